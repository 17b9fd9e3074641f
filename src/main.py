#!/usr/bin/env python3
"""
Main Execution - Adobe Launch / DTM container extraction
Extracts rules, data elements and extensions from a Launch script URL,
or discovers every Launch script reachable from a page URL
"""

import asyncio
import json
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import Config
from orchestrator import ExtractionOrchestrator
from rule_helpers import (
    format_action_description,
    format_condition_description,
    format_event_description,
    get_rule_frequency
)


USAGE = """Usage:
  python main.py <url>                       # Recursive discovery from a page or script URL
  python main.py <url> --no-recursive        # Extract a single script URL
  python main.py <url> --depth=N             # Maximum recursion depth (default: 3)
  python main.py <url> --timeout=MS          # HTTP request timeout in milliseconds (default: 30000)
  python main.py <url> --config=FILE         # Custom JSON configuration file
  python main.py <url> --output=FILE         # Write the raw result as JSON
  python main.py <url> --debug               # Debug logging"""


def parse_args(argv: List[str]) -> Optional[Dict[str, Any]]:
    """Parse command line arguments, None when no URL was given"""
    options = {
        'url': None,
        'recursive': True,
        'depth': None,
        'timeout': None,
        'config': None,
        'output': None,
        'debug': False
    }

    for arg in argv:
        if arg == '--no-recursive':
            options['recursive'] = False
        elif arg == '--debug':
            options['debug'] = True
        elif arg.startswith('--depth='):
            options['depth'] = int(arg.split('=', 1)[1])
        elif arg.startswith('--timeout='):
            options['timeout'] = int(arg.split('=', 1)[1])
        elif arg.startswith('--config='):
            options['config'] = arg.split('=', 1)[1]
        elif arg.startswith('--output='):
            options['output'] = arg.split('=', 1)[1]
        elif not arg.startswith('--') and options['url'] is None:
            options['url'] = arg

    return options if options['url'] else None


def print_summary(result: Dict[str, Any]):
    """Print rule, data element and extension counts"""
    container = result.get('merged', result)
    rules = container.get('rules') or []

    print(f"\n{'='*80}")
    print("🧾 ADOBE LAUNCH EXTRACTION SUMMARY")
    print(f"{'='*80}")

    if 'scripts_processed' in result:
        failed = sum(1 for r in result.get('results', []) if not r.get('success'))
        print(f" Scripts processed: {result['scripts_processed']} ({failed} failed)")

    print(f" Rules: {len(rules)}")
    print(f" Data elements: {len(container.get('dataElements') or {})}")
    print(f" Extensions: {len(container.get('extensions') or {})}")

    if rules:
        print("\n Rule frequency:")
        for frequency, count in Counter(get_rule_frequency(rule) for rule in rules).most_common():
            print(f"   {frequency}: {count}")

        print("\n Rules:")
        for rule in rules:
            print_rule(rule)


def print_rule(rule: Dict[str, Any]):
    """Print one rule with a line per event, condition and action"""
    print(f"   • {rule.get('name') or rule.get('id') or 'Unnamed rule'} [{get_rule_frequency(rule)}]")
    for event in rule.get('events') or []:
        print(f"       Event: {format_event_description(event)}")
    for condition in rule.get('conditions') or []:
        print(f"       Condition: {format_condition_description(condition)}")
    for action in rule.get('actions') or []:
        print(f"       Action: {format_action_description(action)}")


def save_to_json(result: Dict[str, Any], filename: str, prettify: bool = True):
    """Write the raw extraction result"""
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(result, f, indent=2 if prettify else None, ensure_ascii=False)

    print(f"\n Results saved to: {filepath}")


async def main(argv: List[str]) -> int:
    """Main execution function, returns the process exit code"""
    options = parse_args(argv)
    if options is None:
        print(USAGE)
        return 1

    config = Config(options['config'], debug_mode=options['debug'])
    if options['depth'] is not None:
        config.set('discovery.maxDepth', options['depth'])
    if options['timeout'] is not None:
        config.set('browser.timeout', options['timeout'])
    debug_mode = options['debug'] or config.get('logging.debug', False)

    print("\n🚀 Adobe DTM/Launch Rule Extractor\n")
    print(f" Analyzing: {options['url']}")
    print(f" Recursive: {'Yes' if options['recursive'] else 'No'}")
    if options['recursive']:
        print(f" Max depth: {config.get('discovery.maxDepth')}")

    async with ExtractionOrchestrator(config, debug_mode=debug_mode) as orchestrator:
        if options['recursive']:
            result = await orchestrator.run_recursive(options['url'])
        else:
            result = await orchestrator.run_single(options['url'])

    if not result.get('success'):
        print(f"\n❌ Extraction failed: {result.get('error', 'unknown error')}")
        return 1

    print_summary(result)

    if options['output']:
        save_to_json(result, options['output'], config.get('output.prettify', True))

    print("\n✅ Extraction completed successfully!")
    return 0


if __name__ == "__main__":
    try:
        exit_code = asyncio.run(main(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\n⚠️ Extraction interrupted by user")
        exit_code = 1
    except Exception as e:
        print(f"\n Fatal error: {str(e)}")
        exit_code = 1
    sys.exit(exit_code)
