#!/usr/bin/env python3
"""
Human-readable descriptions of Launch rule modules
"""

from typing import Any, Dict

from function_serializer import is_function_descriptor


EVENT_TYPES = {
    'core/src/lib/events/libraryLoaded.js': 'Library Loaded (Page Top)',
    'core/src/lib/events/pageBottom.js': 'Page Bottom',
    'core/src/lib/events/domReady.js': 'DOM Ready',
    'core/src/lib/events/windowLoaded.js': 'Window Loaded',
    'core/src/lib/events/directCall.js': 'Direct Call',
    'core/src/lib/events/customEvent.js': 'Custom Event',
    'core/src/lib/events/click.js': 'Click',
    'core/src/lib/events/submit.js': 'Form Submission',
    'core/src/lib/events/change.js': 'Change',
    'core/src/lib/events/focus.js': 'Focus',
    'core/src/lib/events/blur.js': 'Blur',
    'core/src/lib/events/keypress.js': 'Keypress',
    'core/src/lib/events/hover.js': 'Hover',
    'core/src/lib/events/entersViewport.js': 'Enters Viewport',
    'core/src/lib/events/timeOnPage.js': 'Time on Page',
    'core/src/lib/events/tabBlur.js': 'Tab Blur',
    'core/src/lib/events/tabFocus.js': 'Tab Focus',
    'core/src/lib/events/mediaEnded.js': 'Media Ended',
    'core/src/lib/events/mediaPaused.js': 'Media Paused',
    'core/src/lib/events/mediaPlayed.js': 'Media Played',
    'core/src/lib/events/dataElementChange.js': 'Data Element Change',
    'core/src/lib/events/historyChange.js': 'History Change'
}

CONDITION_TYPES = {
    'core/src/lib/conditions/path.js': 'URL Path',
    'core/src/lib/conditions/pathAndQuerystring.js': 'Path & Query String',
    'core/src/lib/conditions/protocol.js': 'Protocol',
    'core/src/lib/conditions/subdomain.js': 'Subdomain',
    'core/src/lib/conditions/queryStringParameter.js': 'Query String Parameter',
    'core/src/lib/conditions/hash.js': 'Hash',
    'core/src/lib/conditions/cookie.js': 'Cookie',
    'core/src/lib/conditions/customCode.js': 'Custom Code',
    'core/src/lib/conditions/dateRange.js': 'Date Range',
    'core/src/lib/conditions/deviceType.js': 'Device Type',
    'core/src/lib/conditions/domain.js': 'Domain',
    'core/src/lib/conditions/landingPage.js': 'Landing Page',
    'core/src/lib/conditions/loggedIn.js': 'Logged In',
    'core/src/lib/conditions/maxFrequency.js': 'Max Frequency',
    'core/src/lib/conditions/newOrReturningVisitor.js': 'New/Returning Visitor',
    'core/src/lib/conditions/pageViews.js': 'Page Views',
    'core/src/lib/conditions/previousOccurrences.js': 'Previous Occurrences',
    'core/src/lib/conditions/trafficSource.js': 'Traffic Source',
    'core/src/lib/conditions/variable.js': 'Variable',
    'core/src/lib/conditions/samplingRate.js': 'Sampling Rate',
    'core/src/lib/conditions/valueComparison.js': 'Value Comparison'
}

ACTION_TYPES = {
    'core/src/lib/actions/customCode.js': 'Custom Code',
    'adobe-analytics/src/lib/actions/sendBeacon.js': 'Send Analytics Beacon',
    'adobe-analytics/src/lib/actions/setVariables.js': 'Set Analytics Variables',
    'adobe-analytics/src/lib/actions/clearVariables.js': 'Clear Analytics Variables',
    'adobe-target/src/lib/actions/loadTarget.js': 'Load Target',
    'adobe-target/src/lib/actions/firePageLoad.js': 'Fire Target Page Load',
    'adobe-audience-manager/src/lib/actions/sendData.js': 'Send to Audience Manager'
}


def get_event_type(module_path: str) -> str:
    return EVENT_TYPES.get(module_path, 'Custom Event')


def get_condition_type(module_path: str) -> str:
    return CONDITION_TYPES.get(module_path, 'Custom Condition')


def get_action_type(module_path: str) -> str:
    return ACTION_TYPES.get(module_path, 'Custom Action')


def format_event_description(event: Dict[str, Any]) -> str:
    description = get_event_type(event.get('modulePath'))
    settings = event.get('settings') or {}

    if settings.get('identifier'):
        description += f' - Identifier: "{settings["identifier"]}"'
    if settings.get('elementSelector'):
        description += f" - Selector: `{settings['elementSelector']}`"
    if settings.get('eventType'):
        description += f' - Event: "{settings["eventType"]}"'
    if settings.get('delay') is not None:
        description += f" - Delay: {settings['delay']}ms"
    if settings.get('bubbleFireIfParent'):
        description += ' - Bubbles to parent'
    if settings.get('bubbleFireIfChildFired'):
        description += ' - Fires if child fired'

    return description


def format_condition_description(condition: Dict[str, Any]) -> str:
    description = get_condition_type(condition.get('modulePath'))
    settings = condition.get('settings') or {}

    paths = settings.get('paths')
    if isinstance(paths, list) and paths:
        if len(paths) == 1 and isinstance(paths[0], dict):
            description += f': "{paths[0].get("value")}"'
        else:
            description += f': {len(paths)} paths'
    if settings.get('value') and not is_function_descriptor(settings['value']):
        description += f': "{settings["value"]}"'
    if settings.get('name'):
        description += f': "{settings["name"]}"'

    start, end = settings.get('start'), settings.get('end')
    if start and end:
        description += f': {start} to {end}'
    elif start:
        description += f': After {start}'
    elif end:
        description += f': Before {end}'

    if condition.get('negate'):
        description = f'NOT {description}'

    return description


def format_action_description(action: Dict[str, Any]) -> str:
    description = get_action_type(action.get('modulePath'))
    settings = action.get('settings') or {}

    evars = (settings.get('trackerProperties') or {}).get('eVars')
    if evars:
        description += f' ({len(evars)} eVars)'
    if settings.get('source') and settings.get('isExternal'):
        description += ' (External Script)'
    elif is_function_descriptor(settings.get('source')):
        description += ' (Inline Function)'

    return description


def get_rule_frequency(rule: Dict[str, Any]) -> str:
    """Rough description of how often a rule fires"""
    events = rule.get('events') or []
    conditions = rule.get('conditions') or []

    def paths(modules):
        return [module.get('modulePath') or '' for module in modules]

    event_paths = paths(events)
    has_page_load = any(
        marker in path
        for path in event_paths
        for marker in ('libraryLoaded', 'windowLoaded', 'domReady')
    )
    has_frequency = any(
        marker in path
        for path in paths(conditions)
        for marker in ('maxFrequency', 'previousOccurrences')
    )

    if has_page_load and not has_frequency:
        return 'Every page load'
    if has_page_load and has_frequency:
        return 'Page load (with frequency limit)'
    if any('click' in path for path in event_paths):
        return 'On user click'
    if any('directCall' in path for path in event_paths):
        return 'On direct call trigger'
    if not events:
        return 'On specific conditions'
    return 'Event-driven'
