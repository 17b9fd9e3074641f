#!/usr/bin/env python3
"""
Extraction Orchestrator - discovery, per-script extraction with retry, and merging
Scripts are processed one at a time in discovery order
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import Config
from container_extractor import ContainerExtractor, normalize_rules
from errors import InvalidUrlError
from evaluators import ObjectLiteralEvaluator, ScriptEvaluator
from http_client import HttpFetcher
from js_sandbox import JavaScriptSandbox
from logging_setup import setup_logger
from retry_handler import RetryExecutor, is_retryable_error
from script_finder import ScriptFinder
from url_resolver import URLResolver


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def merge_results(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge per-script extraction results

    Rules are concatenated in discovery order. dataElements and extensions are
    merged key by key, later scripts winning on collisions. Failed results are skipped.
    """
    merged = {
        'success': True,
        'timestamp': _timestamp(),
        'sources': [],
        'rules': [],
        'dataElements': {},
        'extensions': {}
    }

    for result in results:
        if not result.get('success'):
            continue

        merged['sources'].append(result.get('url'))
        merged['rules'].extend(copy.deepcopy(normalize_rules(result.get('rules'))))
        for key in ('dataElements', 'extensions'):
            value = result.get(key)
            if isinstance(value, dict):
                merged[key].update(copy.deepcopy(value))

    merged['url'] = ', '.join(source for source in merged['sources'] if source)
    return merged


class ExtractionOrchestrator:
    """Runs single-script or recursive extraction"""

    def __init__(
        self,
        config: Optional[Config] = None,
        fetcher=None,
        sandbox=None,
        extractor: Optional[ContainerExtractor] = None,
        finder: Optional[ScriptFinder] = None,
        retry: Optional[RetryExecutor] = None,
        debug_mode: bool = True
    ):
        self.config = config or Config(debug_mode=debug_mode)
        self.debug_mode = debug_mode
        self.logger = setup_logger('ExtractionOrchestrator', debug_mode)
        self.url_resolver = URLResolver(debug_mode=debug_mode)

        self.fetcher = fetcher or HttpFetcher(
            user_agent=self.config.get('browser.userAgent', 'Mozilla/5.0'),
            timeout_ms=self.config.get('browser.timeout', 30000),
            debug_mode=debug_mode
        )
        self._owns_sandbox = sandbox is None and extractor is None
        self.sandbox = sandbox
        if self._owns_sandbox:
            self.sandbox = JavaScriptSandbox(headless=self.config.get('browser.headless', True), debug_mode=debug_mode)

        self.extractor = extractor or ContainerExtractor(
            ScriptEvaluator(self.sandbox, self.config.get('sandbox.scriptTimeout', 10000), debug_mode),
            ObjectLiteralEvaluator(self.sandbox, self.config.get('sandbox.literalTimeout', 5000), debug_mode),
            debug_mode=debug_mode
        )
        self.finder = finder or ScriptFinder(self.fetcher, self.config, self.url_resolver, debug_mode)
        self.retry = retry or RetryExecutor(self.config, debug_mode=debug_mode)

    async def __aenter__(self) -> 'ExtractionOrchestrator':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_sandbox and self.sandbox is not None:
            await self.sandbox.close()

    async def extract_rules(self, url: str) -> Dict[str, Any]:
        """Fetch one script and extract its container"""
        self.logger.info(f"⋯ Fetching {url}...")
        resource = await self.fetcher.fetch(url)

        self.logger.info("⋯ Parsing Adobe Launch container...")
        container = await self.extractor.extract(resource.text, url=url)

        self.logger.info(
            f"✅ Extracted {len(container['rules'])} rules, "
            f"{len(container['dataElements'])} data elements, "
            f"{len(container['extensions'])} extensions"
        )

        result = {'success': True, 'url': url, 'timestamp': _timestamp()}
        result.update(container)
        return result

    async def _extract_with_retry(self, url: str, context: str) -> Dict[str, Any]:
        return await self.retry.execute_with_retry(
            lambda: self.extract_rules(url),
            context,
            retry_on=is_retryable_error
        )

    def _require_valid_url(self, url: str) -> str:
        normalized_url = self.url_resolver.normalize(url)
        if not normalized_url:
            raise InvalidUrlError(url)
        return normalized_url

    async def run_single(self, url: str) -> Dict[str, Any]:
        """
        Extract the container from one script URL

        Raises:
            InvalidUrlError, FetchError, NotFoundError
        """
        url = self._require_valid_url(url)
        self.logger.info(f"🚀 Starting extraction from: {url}")

        try:
            return await self._extract_with_retry(url, 'HTTP extraction')
        except Exception as e:
            self.logger.error(f" Extraction failed: {e}")
            raise

    async def run_recursive(self, start_url: str, max_depth: Optional[int] = None) -> Dict[str, Any]:
        """
        Discover every Launch script reachable from start_url and merge their containers

        Returns:
            {'success', 'scripts_processed', 'results', 'merged'}
        """
        start_url = self._require_valid_url(start_url)
        self.logger.info(f"🚀 Starting recursive extraction from: {start_url}")

        scripts = await self.finder.discover(start_url, max_depth)
        if not scripts:
            self.logger.warning("⚠ No Adobe DTM scripts found")
            return {
                'success': False,
                'error': 'No scripts found',
                'scripts_processed': 0,
                'results': [],
                'merged': merge_results([])
            }

        self.logger.info(f"📋 Discovered {len(scripts)} Adobe DTM scripts")

        results = []
        for script in scripts:
            script_url = script['url']
            self.logger.info(f"⋯ Extracting from: {script_url}")
            try:
                results.append(await self._extract_with_retry(script_url, f"Extraction from {script_url}"))
            except Exception as e:
                self.logger.warning(f"⚠ Failed to extract from {script_url}: {e}")
                results.append({'success': False, 'url': script_url, 'error': str(e)})

        merged = merge_results(results)
        self.logger.info(f"✅ Extraction complete! Processed {len(scripts)} scripts.")

        return {
            'success': True,
            'scripts_processed': len(scripts),
            'results': results,
            'merged': merged
        }

    async def run_multiple(self, urls: List[str]) -> List[Dict[str, Any]]:
        """Extract from a fixed list of script URLs, recording failures instead of raising"""
        results = []
        for url in urls:
            try:
                results.append(await self.run_single(url))
            except Exception as e:
                self.logger.warning(f"⚠ Skipping {url} due to error: {e}")
                results.append({'success': False, 'url': url, 'error': str(e)})
        return results
