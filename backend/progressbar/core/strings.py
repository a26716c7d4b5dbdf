from __future__ import annotations


STRINGS: dict[str, str] = {
    "config_default_title": "Progress Bar",
    "no_courses": "You are not enrolled in any courses. Progress Bars from courses will be shown here.",
    "no_blocks": "No Progress Bar blocks are set up for your courses.",
    "no_events_config_message": (
        "There are no activities or resources to monitor the progress of. "
        "Add some activities and/or resources to the course first."
    ),
    "no_events_message": "No activities or resources are being monitored. Use config to set up monitoring.",
    "no_visible_events_message": "None of the selected events are currently visible.",
    "selectitemstobeadded": "Select items to be added",
    "addallcurrentitems": "Add all current activities and resources",
    "overview": "Overview of students",
    "progress": "Progress",
    "completed": "Completed",
    "not_completed": "Not completed",
    "time_expected": "Expected by",
    "now_indicator": "NOW",
    "no_students": "There are no students enrolled in this course.",
    "action_viewed": "viewed",
    "action_attempted": "attempted",
    "action_submitted": "submitted",
    "action_finished": "finished",
    "action_marked": "marked",
    "action_graded": "graded",
    "action_passed": "passed",
    "action_posted": "posted to",
    "action_activity_completion": "completed",
}


def get_string(identifier: str, **params: object) -> str:
    text = STRINGS.get(identifier)
    if text is None:
        return f"[[{identifier}]]"
    if params:
        return text.format(**params)
    return text
