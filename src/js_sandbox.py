#!/usr/bin/env python3
"""
Isolated JavaScript execution host backed by a headless Playwright Chromium
Every evaluation runs in its own offline browser context with all requests aborted
A hung evaluation is cut off by a timeout and the browser is recycled
"""

import asyncio
from typing import Any, Optional

from playwright.async_api import async_playwright, Browser, Playwright, Route

from logging_setup import setup_logger


class SandboxTimeoutError(Exception):
    """JavaScript evaluation exceeded its time budget"""


class JavaScriptSandbox:
    """Owns one headless browser and hands out throwaway contexts for evaluation"""

    def __init__(self, headless: bool = True, debug_mode: bool = True):
        self.headless = headless
        self.debug_mode = debug_mode
        self.logger = setup_logger('JavaScriptSandbox', debug_mode)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._close_timeout = 5.0

    async def __aenter__(self) -> 'JavaScriptSandbox':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def start(self):
        """Launch the browser if it is not running yet"""
        if self._browser is not None:
            return

        if self._playwright is None:
            self._playwright = await async_playwright().start()

        self.logger.debug("🚀 Launching sandbox browser...")
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=[
                '--no-sandbox',
                '--disable-dev-shm-usage',
                '--disable-extensions',
                '--disable-plugins',
                '--disable-background-networking',
                '--no-first-run',
                '--no-default-browser-check'
            ]
        )

    async def close(self):
        """Shut down the browser and the Playwright driver"""
        await self._close_browser()
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.debug(f" Error stopping Playwright: {e}")
            self._playwright = None

    async def evaluate(self, expression: str, arg: Any = None, timeout_ms: int = 5000) -> Any:
        """
        Evaluate a JavaScript function expression in a fresh isolated context

        Args:
            expression: Function source, called with ``arg``
            arg: JSON-serializable argument passed to the function
            timeout_ms: Hard time budget for the evaluation

        Returns:
            The JSON-compatible value returned by the function

        Raises:
            SandboxTimeoutError: when the budget is exceeded
        """
        await self.start()

        context = await self._browser.new_context(
            offline=True,
            java_script_enabled=True,
            service_workers='block'
        )
        timed_out = False
        try:
            await context.route('**/*', self._block_request)
            page = await context.new_page()
            return await asyncio.wait_for(page.evaluate(expression, arg), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            timed_out = True
            raise SandboxTimeoutError(f"Evaluation exceeded {timeout_ms}ms")
        finally:
            if timed_out:
                # the renderer may still be spinning; only killing the browser frees it
                self.logger.debug(f"⏰ Sandbox evaluation timed out after {timeout_ms}ms, recycling browser")
                await self._close_browser()
            else:
                await self._close_context(context)

    async def _block_request(self, route: Route):
        await route.abort()

    async def _close_context(self, context):
        try:
            await asyncio.wait_for(context.close(), timeout=self._close_timeout)
        except Exception as e:
            self.logger.debug(f" Error closing sandbox context: {e}")
            await self._close_browser()

    async def _close_browser(self):
        browser, self._browser = self._browser, None
        if browser is None:
            return
        try:
            await asyncio.wait_for(browser.close(), timeout=self._close_timeout)
        except Exception as e:
            self.logger.debug(f" Error closing sandbox browser: {e}")
