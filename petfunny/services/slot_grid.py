from datetime import date
from typing import Dict, Iterable, Union

from petfunny.models.schedule import OpeningHoursRule, SlotWindow
from petfunny.services.time_utils import day_of_week, hhmm_to_minutes

RulesInput = Union[Dict[int, OpeningHoursRule], Iterable[OpeningHoursRule]]


def rules_by_dow(rules: RulesInput) -> Dict[int, OpeningHoursRule]:
    if isinstance(rules, dict):
        return rules
    return {rule.dow: rule for rule in rules}


def compute_slot_grid(day: date, rules: RulesInput) -> SlotWindow:
    """
    Operating window of `day` as minutes since midnight.
    A weekday with no rule is closed.
    """
    rule = rules_by_dow(rules).get(day_of_week(day))
    if rule is None or rule.is_closed:
        return SlotWindow(closed=True)

    start = hhmm_to_minutes(rule.open_time)
    end = hhmm_to_minutes(rule.close_time)
    if start is None or end is None:
        return SlotWindow(closed=True)
    return SlotWindow(closed=False, start_minutes=start, end_minutes=end)
