"""Tests for extraction orchestration and result merging."""

import json

import pytest

from conftest import FakeFetcher, JsonScriptEvaluator, NullLiteralEvaluator
from config import Config
from container_extractor import ContainerExtractor
from errors import FetchError, InvalidUrlError, NotFoundError
from orchestrator import ExtractionOrchestrator, merge_results
from retry_handler import RetryExecutor

PAGE = 'https://www.example.com/'
LAUNCH_A = 'https://assets.adobedtm.com/abc/def/launch-a.min.js'
LAUNCH_B = 'https://assets.adobedtm.com/abc/def/launch-b.min.js'


def _container(*rule_ids, data_elements=None, extensions=None):
	return json.dumps({
		'rules': [{'id': rule_id, 'name': rule_id} for rule_id in rule_ids],
		'dataElements': data_elements or {},
		'extensions': extensions or {},
	})


def _orchestrator(documents, recording_sleep, failures=None):
	config = Config()
	fetcher = FakeFetcher(documents, failures)
	extractor = ContainerExtractor(JsonScriptEvaluator(), NullLiteralEvaluator(), debug_mode=False)
	orchestrator = ExtractionOrchestrator(
		config=config,
		fetcher=fetcher,
		extractor=extractor,
		retry=RetryExecutor(config, sleep=recording_sleep, debug_mode=False),
		debug_mode=False,
	)
	return orchestrator, fetcher


class TestMergeResults:
	def test_concatenates_rules_and_later_scripts_win(self):
		results = [
			{'success': True, 'url': 'a.js', 'rules': [{'id': 'r1'}, {'id': 'r2'}], 'dataElements': {'foo': 1, 'bar': 1}, 'extensions': {'core': {'v': 1}}},
			{'success': False, 'url': 'broken.js', 'error': 'boom'},
			{'success': True, 'url': 'b.js', 'rules': [{'id': 'r3'}], 'dataElements': {'foo': 2}, 'extensions': {}},
		]

		merged = merge_results(results)

		assert [rule['id'] for rule in merged['rules']] == ['r1', 'r2', 'r3']
		assert merged['dataElements'] == {'foo': 2, 'bar': 1}
		assert merged['extensions'] == {'core': {'v': 1}}
		assert merged['sources'] == ['a.js', 'b.js']
		assert merged['url'] == 'a.js, b.js'
		assert merged['success'] is True

	def test_merged_values_are_copies(self):
		source = {'success': True, 'url': 'a.js', 'rules': [{'id': 'r1'}], 'dataElements': {'foo': {'x': 1}}, 'extensions': {}}
		merged = merge_results([source])
		merged['dataElements']['foo']['x'] = 2
		merged['rules'][0]['id'] = 'changed'
		assert source['dataElements']['foo']['x'] == 1
		assert source['rules'][0]['id'] == 'r1'

	def test_non_mapping_sections_are_skipped(self):
		results = [
			{'success': True, 'url': 'a.js', 'rules': [], 'dataElements': {'foo': 1}, 'extensions': {}},
			{'success': True, 'url': 'b.js', 'rules': [], 'dataElements': ['oops'], 'extensions': 'core'},
		]
		merged = merge_results(results)
		assert merged['dataElements'] == {'foo': 1}
		assert merged['extensions'] == {}
		assert merged['sources'] == ['a.js', 'b.js']

	def test_empty(self):
		merged = merge_results([])
		assert merged['rules'] == []
		assert merged['sources'] == []
		assert merged['url'] == ''


class TestRunSingle:
	@pytest.mark.asyncio
	async def test_extracts_container(self, recording_sleep):
		orchestrator, _ = _orchestrator({LAUNCH_A: _container('r1', data_elements={'page': {}})}, recording_sleep)

		result = await orchestrator.run_single(LAUNCH_A)

		assert result['success'] is True
		assert result['url'] == LAUNCH_A
		assert result['rules'] == [{'id': 'r1', 'name': 'r1'}]
		assert result['dataElements'] == {'page': {}}
		assert result['buildInfo'] is None
		assert 'timestamp' in result

	@pytest.mark.asyncio
	async def test_invalid_url(self, recording_sleep):
		orchestrator, fetcher = _orchestrator({}, recording_sleep)
		with pytest.raises(InvalidUrlError):
			await orchestrator.run_single('not a url')
		assert fetcher.calls == []

	@pytest.mark.asyncio
	async def test_missing_container_is_not_retried(self, recording_sleep):
		orchestrator, fetcher = _orchestrator({LAUNCH_A: 'console.log(1)'}, recording_sleep)
		with pytest.raises(NotFoundError):
			await orchestrator.run_single(LAUNCH_A)
		assert fetcher.calls == [LAUNCH_A]
		assert recording_sleep.delays == []

	@pytest.mark.asyncio
	async def test_transient_failure_is_retried(self, recording_sleep):
		failures = {LAUNCH_A: [FetchError(LAUNCH_A, 'HTTP 503', status_code=503)]}
		orchestrator, fetcher = _orchestrator({LAUNCH_A: _container('r1')}, recording_sleep, failures)

		result = await orchestrator.run_single(LAUNCH_A)

		assert result['rules'][0]['id'] == 'r1'
		assert fetcher.calls == [LAUNCH_A, LAUNCH_A]
		assert recording_sleep.delays == [1.0]

	@pytest.mark.asyncio
	async def test_persistent_failure_uses_every_attempt(self, recording_sleep):
		failures = {LAUNCH_A: FetchError(LAUNCH_A, 'HTTP 503', status_code=503)}
		orchestrator, fetcher = _orchestrator({}, recording_sleep, failures)

		with pytest.raises(FetchError):
			await orchestrator.run_single(LAUNCH_A)

		assert len(fetcher.calls) == 3
		assert recording_sleep.delays == [1.0, 2.0]


class TestRunRecursive:
	@pytest.mark.asyncio
	async def test_merges_discovered_scripts(self, recording_sleep):
		page = f'<script src="{LAUNCH_A}"></script><script src="{LAUNCH_B}"></script>'
		documents = {
			PAGE: page,
			LAUNCH_A: _container('a1', 'a2', data_elements={'foo': 'from a'}),
			LAUNCH_B: _container('b1', data_elements={'foo': 'from b'}, extensions={'core': {}}),
		}
		orchestrator, _ = _orchestrator(documents, recording_sleep)

		result = await orchestrator.run_recursive(PAGE)

		assert result['success'] is True
		assert result['scripts_processed'] == 2
		assert [r['url'] for r in result['results']] == [LAUNCH_A, LAUNCH_B]
		merged = result['merged']
		assert [rule['id'] for rule in merged['rules']] == ['a1', 'a2', 'b1']
		assert merged['dataElements'] == {'foo': 'from b'}
		assert merged['extensions'] == {'core': {}}
		assert merged['url'] == f'{LAUNCH_A}, {LAUNCH_B}'

	@pytest.mark.asyncio
	async def test_failed_script_is_recorded(self, recording_sleep):
		page = f'<script src="{LAUNCH_A}"></script><script src="{LAUNCH_B}"></script>'
		documents = {PAGE: page, LAUNCH_A: 'not json', LAUNCH_B: _container('b1')}
		orchestrator, _ = _orchestrator(documents, recording_sleep)

		result = await orchestrator.run_recursive(PAGE)

		assert result['success'] is True
		assert result['scripts_processed'] == 2
		failed, succeeded = result['results']
		assert failed['success'] is False
		assert failed['url'] == LAUNCH_A
		assert '_satellite.container' in failed['error']
		assert succeeded['success'] is True
		assert result['merged']['sources'] == [LAUNCH_B]

	@pytest.mark.asyncio
	async def test_odd_section_shapes_do_not_abort_the_run(self, recording_sleep):
		page = f'<script src="{LAUNCH_A}"></script><script src="{LAUNCH_B}"></script>'
		documents = {
			PAGE: page,
			LAUNCH_A: _container('a1', data_elements={'foo': 1}),
			LAUNCH_B: json.dumps({'rules': [{'id': 'b1'}], 'dataElements': ['oops'], 'extensions': 'core'}),
		}
		orchestrator, _ = _orchestrator(documents, recording_sleep)

		result = await orchestrator.run_recursive(PAGE)

		assert [r['success'] for r in result['results']] == [True, True]
		assert result['results'][1]['dataElements'] == {}
		merged = result['merged']
		assert [rule['id'] for rule in merged['rules']] == ['a1', 'b1']
		assert merged['dataElements'] == {'foo': 1}
		assert merged['extensions'] == {}

	@pytest.mark.asyncio
	async def test_no_scripts_found(self, recording_sleep):
		orchestrator, _ = _orchestrator({PAGE: '<html><script src="/app.js"></script></html>'}, recording_sleep)

		result = await orchestrator.run_recursive(PAGE)

		assert result['success'] is False
		assert result['error'] == 'No scripts found'
		assert result['scripts_processed'] == 0
		assert result['results'] == []
		assert result['merged']['rules'] == []

	@pytest.mark.asyncio
	async def test_invalid_start_url(self, recording_sleep):
		orchestrator, _ = _orchestrator({}, recording_sleep)
		with pytest.raises(InvalidUrlError):
			await orchestrator.run_recursive('')


class TestRunMultiple:
	@pytest.mark.asyncio
	async def test_records_failures_and_keeps_order(self, recording_sleep):
		orchestrator, _ = _orchestrator({LAUNCH_A: _container('a1'), LAUNCH_B: _container('b1')}, recording_sleep)

		results = await orchestrator.run_multiple([LAUNCH_A, 'bogus', LAUNCH_B])

		assert [r['success'] for r in results] == [True, False, True]
		assert results[1]['url'] == 'bogus'
		assert 'Invalid URL' in results[1]['error']
		assert results[2]['rules'] == [{'id': 'b1', 'name': 'b1'}]


class TestLifecycle:
	@pytest.mark.asyncio
	async def test_injected_extractor_means_no_owned_sandbox(self, recording_sleep):
		orchestrator, _ = _orchestrator({}, recording_sleep)
		async with orchestrator as running:
			assert running is orchestrator
		assert orchestrator.sandbox is None
