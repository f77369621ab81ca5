from typing import Callable, Iterable

from .types import FilterMatch, Group, Range, Setting


GroupFilter = Callable[[Group], bool]
SettingMatcher = Callable[[Setting], list[Range]]


class EmptyFilterError(ValueError):
    """Raised when filtering without a filter. Callers handle "no filter" themselves."""


def filter_settings(
    groups: Iterable[Group],
    filter: str,
    group_filter: GroupFilter,
    setting_matcher: SettingMatcher,
) -> list[FilterMatch]:
    """Collect the settings that belong to a matching group or produce matches.

    The matcher returns document ranges; they are made relative to the start
    line of their setting.
    """

    if not filter:
        raise EmptyFilterError("Cannot filter settings with an empty filter.")

    result = list[FilterMatch]()

    for group in groups:
        group_matched = group_filter(group)

        for setting in group.settings():
            start_line = setting.range.start_line if setting.range is not None else 0
            matches = [
                match.shift_lines(-start_line) for match in setting_matcher(setting)
            ]

            if group_matched or matches:
                result.append(FilterMatch(setting=setting, matches=matches))

    return result
