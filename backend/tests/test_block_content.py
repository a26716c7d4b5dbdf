from datetime import timedelta

from conftest import NOW, track
from progressbar.core.strings import get_string
from progressbar.models.activity import AttemptKind
from progressbar.models.capability import Permission
from progressbar.models.course import CourseRole
from progressbar.schemas.block import ProgressConfig
from progressbar.services.block import PAGE_COURSE, PAGE_DASHBOARD, Page, ProgressBlock
from progressbar.services.capabilities import CAP_SHOWBAR, CAP_VIEW_HIDDEN_ACTIVITIES


def _course_page(db, user, *, editing=False):
    return Page(db, user, page_type=PAGE_COURSE, editing=editing, now=NOW)


def _render(db, user, block, *, editing=False):
    page = _course_page(db, user, editing=editing)
    content = page.block(block).get_content()
    return content, page


def _setup(seed, **config_options):
    course = seed.course("C1")
    essay = seed.cm(course, "assign", "Essay", due_at=NOW - timedelta(days=1))
    reading = seed.cm(course, "page", "Reading")
    block = seed.block(course, track(essay, reading, **config_options))
    return course, essay, reading, block


def test_guests_see_nothing(db, seed):
    course, essay, _, block = _setup(seed)
    guest = seed.user("guest", is_guest=True)
    seed.enrol(guest, course)

    for viewer in (None, guest):
        content, page = _render(db, viewer, block)
        assert content.text == ""
        assert content.footer == ""
        assert page.requires.js_calls == []


def test_student_sees_bar_without_overview(db, seed):
    course, essay, reading, block = _setup(seed)
    student = seed.user("student")
    seed.enrol(student, course)
    seed.attempt(student, reading, AttemptKind.viewed)

    content, page = _render(db, student, block)

    assert f'id="progressBar{block.id}-{student.id}"' in content.text
    assert 'class="progressBarCell completed"' in content.text
    assert 'class="progressBarCell notCompleted"' in content.text
    assert "overviewButton" not in content.text

    functions = [c.function for c in page.requires.js_calls]
    assert functions == ["M.block_progress.setupScrolling", "M.block_progress.init"]
    init = page.requires.js_calls[1]
    assert init.arguments == [[block.id], [student.id]]
    assert init.module["name"] == "block_progress"
    assert init.module["fullpath"] == "/blocks/progress/module.js"


def test_teacher_gets_overview_button(db, seed):
    course, _, _, block = _setup(seed)
    teacher = seed.user("teacher")
    seed.enrol(teacher, course, CourseRole.teacher)

    content, _ = _render(db, teacher, block)

    assert "progressBar" in content.text
    assert "overviewButton" in content.text
    assert f"/blocks/{block.id}/overview" in content.text
    assert get_string("overview") in content.text


def test_no_monitorable_modules_message_is_for_editors_only(db, seed):
    course = seed.course("Empty")
    seed.cm(course, "label")
    block = seed.block(course, ProgressConfig())
    editor = seed.user("editor")
    student = seed.user("student")
    seed.enrol(editor, course, CourseRole.editingteacher)
    seed.enrol(student, course)

    content, page = _render(db, editor, block)
    assert content.text == get_string("no_events_config_message")
    assert page.requires.js_calls == []

    content, _ = _render(db, student, block)
    assert content.text == ""


def test_unconfigured_block_offers_selection_while_editing(db, seed):
    course = seed.course("C1")
    seed.cm(course, "assign")
    block = seed.block(course, None)
    editor = seed.user("editor")
    seed.enrol(editor, course, CourseRole.editingteacher)

    content, _ = _render(db, editor, block)
    assert content.text == get_string("no_events_message")

    content, _ = _render(db, editor, block, editing=True)
    assert content.text.startswith(get_string("no_events_message"))
    assert get_string("selectitemstobeadded") in content.text
    # Nothing to "turn on" when there is no configuration at all.
    assert "turnallon" not in content.text


def test_empty_selection_offers_add_all(db, seed):
    course = seed.course("C1")
    seed.cm(course, "assign")
    block = seed.block(course, ProgressConfig(progress_title="Nothing yet"))
    editor = seed.user("editor")
    student = seed.user("student")
    seed.enrol(editor, course, CourseRole.editingteacher)
    seed.enrol(student, course)

    content, _ = _render(db, editor, block, editing=True)
    assert get_string("addallcurrentitems") in content.text
    assert 'name="turnallon" value="1"' in content.text

    content, _ = _render(db, student, block, editing=True)
    assert content.text == ""


def test_no_visible_events_message(db, seed):
    course = seed.course("C1")
    hidden = seed.cm(course, "assign", visible=False)
    block = seed.block(course, track(hidden))
    editor = seed.user("editor")
    student = seed.user("student")
    seed.enrol(editor, course, CourseRole.editingteacher)
    seed.enrol(student, course)

    content, _ = _render(db, student, block)
    assert content.text == ""

    # Editors see hidden activities by default.
    content, _ = _render(db, editor, block)
    assert "progressBar" in content.text

    seed.override(course, CourseRole.editingteacher, CAP_VIEW_HIDDEN_ACTIVITIES, Permission.prohibit)
    content, page = _render(db, editor, block)
    assert content.text == get_string("no_visible_events_message")
    assert page.requires.js_calls == []


def test_not_yet_available_items_are_not_visible(db, seed):
    course = seed.course("C1")
    later = seed.cm(course, "quiz", available_from=NOW + timedelta(days=5))
    block = seed.block(course, track(later))
    student = seed.user("student")
    seed.enrol(student, course)

    assert _render(db, student, block)[0].text == ""

    later.available_from = NOW - timedelta(days=5)
    db.commit()
    assert "progressBar" in _render(db, student, block)[0].text


def test_group_restriction(db, seed):
    course = seed.course("C1")
    essay = seed.cm(course, "assign")
    insider = seed.user("insider")
    outsider = seed.user("outsider")
    teacher = seed.user("teacher")
    seed.enrol(insider, course)
    seed.enrol(outsider, course)
    seed.enrol(teacher, course, CourseRole.teacher)
    group = seed.group(course, "Group A", members=[insider])
    block = seed.block(course, track(essay, group=group.id))

    assert "progressBar" in _render(db, insider, block)[0].text
    assert "progressBar" in _render(db, teacher, block)[0].text

    content, page = _render(db, outsider, block)
    assert content.text == ""
    assert page.requires.js_calls == []


def test_showbar_can_be_prohibited(db, seed):
    course, _, _, block = _setup(seed)
    student = seed.user("student")
    seed.enrol(student, course)

    seed.override(course, CourseRole.student, CAP_SHOWBAR, Permission.prohibit, block=block)

    content, page = _render(db, student, block)
    assert content.text == ""
    # The page is still wired up for the block.
    assert page.requires.js_calls[1].arguments == [[block.id], [student.id]]


def test_content_is_computed_once_per_page(db, seed, monkeypatch):
    course, _, _, block = _setup(seed)
    student = seed.user("student")
    seed.enrol(student, course)

    page = _course_page(db, student)
    first = page.block(block).get_content()
    first_text = first.text

    calls = []
    monkeypatch.setattr(ProgressBlock, "_course_content", lambda self, user: calls.append(user) or [])
    second = page.block(block).get_content()

    assert second is first
    assert second.text == first_text
    assert calls == []
    assert len(page.requires.js_calls) == 2


def test_rendering_twice_is_byte_identical(db, seed):
    course, _, reading, block = _setup(seed, show_percentage=True)
    student = seed.user("student")
    seed.enrol(student, course)
    seed.attempt(student, reading, AttemptKind.viewed)

    first, _ = _render(db, student, block)
    second, _ = _render(db, student, block)
    assert first.text.encode("utf-8") == second.text.encode("utf-8")


def test_block_title_and_formats(db, seed):
    course = seed.course("C1")
    titled = seed.block(course, ProgressConfig(progress_title="  Weekly tasks "))
    untitled = seed.block(course, ProgressConfig(progress_title="   "))
    student = seed.user("student")

    course_page = _course_page(db, student)
    assert course_page.block(titled).title == "Weekly tasks"
    assert course_page.block(untitled).title == get_string("config_default_title")
    assert course_page.block(titled).instance_allow_multiple()
    assert course_page.block(titled).instance_allow_config()
    assert course_page.block(titled).has_config()

    dashboard = seed.block(None)
    my_page = Page(db, student, page_type=PAGE_DASHBOARD, now=NOW)
    assert not my_page.block(dashboard).instance_allow_multiple()
    assert not my_page.block(dashboard).instance_allow_config()

    formats = ProgressBlock.applicable_formats()
    assert formats["course-view"] and formats["site"] and formats["my"]
    assert formats["mod"] is False
