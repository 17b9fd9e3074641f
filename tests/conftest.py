import json
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from errors import FetchError
from http_client import FetchedResource
from js_sandbox import JavaScriptSandbox


class FakeFetcher:
	"""In-memory stand-in for HttpFetcher keyed by URL"""

	def __init__(self, documents: Dict[str, str], failures: Optional[Dict[str, Exception]] = None):
		self.documents = documents
		self.failures = failures or {}
		self.calls: List[str] = []

	async def fetch(self, url: str, timeout_ms: Optional[int] = None) -> FetchedResource:
		self.calls.append(url)
		failure = self.failures.get(url)
		if isinstance(failure, list):
			if failure:
				raise failure.pop(0)
		elif failure is not None:
			raise failure
		if url not in self.documents:
			raise FetchError(url, 'HTTP 404', status_code=404)
		return FetchedResource(url=url, status_code=200, content_type='text/html', text=self.documents[url])


class JsonScriptEvaluator:
	"""Treats script text as JSON; anything else yields no container"""

	def __init__(self):
		self.calls = []

	async def run(self, script_text):
		self.calls.append(script_text)
		try:
			value = json.loads(script_text)
		except ValueError:
			return None
		return value if isinstance(value, dict) else None


class NullLiteralEvaluator:
	def __init__(self):
		self.calls = []

	async def evaluate(self, literal_text):
		self.calls.append(literal_text)
		return None


class RecordingSleep:
	def __init__(self):
		self.delays = []

	async def __call__(self, seconds):
		self.delays.append(seconds)


@pytest.fixture
def recording_sleep():
	return RecordingSleep()


@pytest_asyncio.fixture
async def sandbox():
	"""Headless Chromium sandbox; tests using it are skipped when no browser is installed"""
	js_sandbox = JavaScriptSandbox(debug_mode=False)
	try:
		await js_sandbox.start()
	except Exception as e:
		await js_sandbox.close()
		pytest.skip(f'Chromium is not available for the JavaScript sandbox: {e}')
	yield js_sandbox
	await js_sandbox.close()
