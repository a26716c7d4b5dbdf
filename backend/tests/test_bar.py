from datetime import timedelta

from conftest import NOW
from progressbar.schemas.block import ProgressConfig
from progressbar.services.bar import progress_bar
from progressbar.services.events import Event


def _event(cmid: int, name: str, expected=None, module: str = "assign", action: str = "submitted") -> Event:
    return Event(cmid=cmid, module=module, name=name, action=action, expected=expected, section=0, position=cmid)


EVENTS = [
    _event(1, "Essay", NOW - timedelta(days=2)),
    _event(2, "Quiz <b>1</b>", NOW - timedelta(days=1), module="quiz", action="finished"),
    _event(3, "Reading", NOW + timedelta(days=1), module="page", action="viewed"),
    _event(4, "Project", None),
]


def test_cells_are_classified_by_completion_and_expected_time():
    html = progress_bar(ProgressConfig(), EVENTS, 7, 12, {1: True}, now=NOW)

    assert 'id="progressBar12-7"' in html
    assert 'class="progressBarCell completed"' in html
    assert 'class="progressBarCell notCompleted"' in html
    assert html.count('class="progressBarCell futureNotCompleted"') == 2
    for cmid in (1, 2, 3, 4):
        assert f'id="progressBarInfo12-7-{cmid}"' in html


def test_item_names_are_escaped():
    html = progress_bar(ProgressConfig(), EVENTS, 7, 12, {}, now=NOW)

    assert "Quiz &lt;b&gt;1&lt;/b&gt;" in html
    assert "<b>1</b>" not in html


def test_percentage_is_optional():
    assert "Progress:" not in progress_bar(ProgressConfig(), EVENTS, 7, 12, {1: True, 3: True}, now=NOW)

    html = progress_bar(ProgressConfig(show_percentage=True), EVENTS, 7, 12, {1: True, 3: True}, now=NOW)
    assert "Progress: 50%" in html


def test_now_marker_only_when_ordered_by_time():
    assert "nowIndicator" in progress_bar(ProgressConfig(), EVENTS, 7, 12, {}, now=NOW)
    assert "nowIndicator" not in progress_bar(ProgressConfig(display_now=False), EVENTS, 7, 12, {}, now=NOW)
    assert "nowIndicator" not in progress_bar(ProgressConfig(orderby="orderbycourse"), EVENTS, 7, 12, {}, now=NOW)


def test_same_input_renders_identically():
    first = progress_bar(ProgressConfig(progress_bar_icons=True), EVENTS, 7, 12, {2: True}, now=NOW)
    second = progress_bar(ProgressConfig(progress_bar_icons=True), EVENTS, 7, 12, {2: True}, now=NOW)
    assert first == second
    assert "progressBarIcon" in first
