"""Spreads points that land in the same minute so none hide behind another."""

from collections import defaultdict

from .models import MomentumPoint


def slot_key(point: MomentumPoint) -> str:
    return point.at.strftime("%Y-%m-%dT%H:%M")


def assign_slots(points: list[MomentumPoint]) -> list[MomentumPoint]:
    """Set slot_offset and draw_order in place; returns the same list.

    Within a minute, points are ranked by percent ascending. The median sits
    at offset 0 and is drawn on top, lower values to its left drawn above
    the higher ones to its right.
    """
    groups: dict[str, list[MomentumPoint]] = defaultdict(list)
    for point in points:
        groups[slot_key(point)].append(point)

    for group in groups.values():
        if len(group) == 1:
            group[0].slot_offset = 0
            group[0].draw_order = 1
            continue
        ranked = sorted(group, key=lambda p: p.percent)
        median = len(ranked) // 2
        for index, point in enumerate(ranked):
            point.slot_offset = index - median
            if index == median:
                point.draw_order = 2
            elif index < median:
                point.draw_order = 1
            else:
                point.draw_order = 0
    return points
