#!/usr/bin/env python3
"""
Script Finder - recursive discovery of Adobe Launch bundles
Follows page <script> references and bundle-to-bundle references up to a depth limit
Each crawl run owns its own visited set and discovery list
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from logging_setup import setup_logger
from url_resolver import URLResolver


class CrawlState:
    """Visited set and discovery list for one crawl run"""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self.visited: Set[str] = set()
        self.discovered: List[Dict[str, Any]] = []

    def add_discovered(self, url: str) -> bool:
        if any(script['url'] == url for script in self.discovered):
            return False
        self.discovered.append({
            'url': url,
            'discoveredAt': datetime.now(timezone.utc).isoformat()
        })
        return True


class ScriptFinder:
    """Depth-first crawler that collects recognized Launch scripts"""

    def __init__(self, fetcher, config=None, url_resolver: Optional[URLResolver] = None, debug_mode: bool = True):
        self.fetcher = fetcher
        self.config = config
        self.debug_mode = debug_mode
        self.url_resolver = url_resolver or URLResolver(debug_mode=debug_mode)
        self.logger = setup_logger('ScriptFinder', debug_mode)

    def _setting(self, key: str, default: Any) -> Any:
        if self.config is None:
            return default
        return self.config.get(key, default)

    async def discover(self, start_url: str, max_depth: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Discover Launch scripts reachable from a page or script URL

        Args:
            start_url: Page URL or direct script URL
            max_depth: Recursion limit, defaults to discovery.maxDepth

        Returns:
            Discovered scripts in traversal order, each {'url', 'discoveredAt'}
        """
        if max_depth is None:
            max_depth = self._setting('discovery.maxDepth', 3)

        state = CrawlState(max_depth)
        await self._visit(start_url, 0, state)
        self.logger.info(f"📋 Discovery finished: {len(state.discovered)} scripts, {len(state.visited)} URLs visited")
        return state.discovered

    async def _visit(self, url: str, depth: int, state: CrawlState):
        if depth > state.max_depth:
            self.logger.debug(f"Max depth {state.max_depth} reached, stopping discovery")
            return

        normalized_url = self.url_resolver.normalize(url)
        if not normalized_url:
            return

        if normalized_url in state.visited:
            self.logger.debug(f"Already visited: {normalized_url}")
            return

        state.visited.add(normalized_url)
        self.logger.info(f"🔍 Discovering scripts from {normalized_url} (depth {depth})...")

        try:
            if self.url_resolver.is_script_url(normalized_url):
                if self.url_resolver.is_recognized_script(normalized_url):
                    if state.add_discovered(normalized_url):
                        self.logger.info(f"✅ Discovered: {normalized_url}")

                    if self._setting('discovery.followExtensions', True):
                        await self._scan_script(normalized_url, depth, state)
            else:
                await self._scan_page(normalized_url, depth, state)

        except Exception as e:
            self.logger.warning(f"⚠ Failed to discover from {normalized_url}: {e}")

    async def _scan_page(self, page_url: str, depth: int, state: CrawlState):
        resource = await self.fetcher.fetch(page_url, timeout_ms=self._setting('discovery.timeout', 10000))
        script_urls = self.url_resolver.extract_script_references(resource.text)

        self.logger.info(f"📄 Found {len(script_urls)} Adobe DTM scripts in page")

        for script_url in script_urls:
            absolute_url = self.url_resolver.make_absolute(script_url, page_url)
            if absolute_url:
                await self._visit(absolute_url, depth + 1, state)

    async def _scan_script(self, script_url: str, depth: int, state: CrawlState):
        try:
            resource = await self.fetcher.fetch(script_url, timeout_ms=self._setting('discovery.timeout', 10000))
        except Exception as e:
            self.logger.debug(f"Could not scan script {script_url}: {e}")
            return

        for found_url in self.url_resolver.extract_asset_references(resource.text):
            if found_url not in state.visited:
                await self._visit(found_url, depth + 1, state)
