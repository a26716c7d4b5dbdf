import base64
import json
import logging

from progressbar.schemas.block import ProgressConfig, TrackedItem
from progressbar.services.block_config import decode_config, encode_config, turn_all_on


def _b64(obj) -> str:
    return base64.b64encode(json.dumps(obj).encode("utf-8")).decode("ascii")


def test_decode_reads_stored_aliases():
    config = decode_config(
        _b64(
            {
                "progressTitle": "Week 1",
                "group": 4,
                "showpercentage": True,
                "items": [{"cmid": 3, "module": "quiz", "action": "passed"}],
            }
        )
    )
    assert config is not None
    assert config.progress_title == "Week 1"
    assert config.group == 4
    assert config.show_percentage is True
    assert config.orderby == "orderbytime"
    assert config.items == [TrackedItem(cmid=3, module="quiz", action="passed")]


def test_decode_failures_mean_no_configuration():
    assert decode_config(None) is None
    assert decode_config("") is None
    assert decode_config("%%% not base64 %%%") is None
    assert decode_config(base64.b64encode(b"{broken json").decode("ascii")) is None
    assert decode_config(_b64([1, 2, 3])) is None
    assert decode_config(_b64({})) is None
    assert decode_config(_b64({"longbars": "sideways"})) is None


def test_decode_failure_names_the_block(caplog):
    with caplog.at_level(logging.WARNING, logger="progressbar.config"):
        assert decode_config("%%% not base64 %%%", block_id=4242) is None
        assert decode_config(_b64({"longbars": "sideways"}), block_id=4343) is None

    messages = [r.getMessage() for r in caplog.records]
    assert any("4242" in m for m in messages)
    assert any("4343" in m for m in messages)


def test_encoded_config_is_readable_again():
    config = ProgressConfig(progress_title="Mine", longbars="wrap")
    assert decode_config(encode_config(config)) == config


def test_turn_all_on_tracks_every_monitorable_module(db, seed):
    course = seed.course("C1")
    assign = seed.cm(course, "assign")
    seed.cm(course, "label")
    page = seed.cm(course, "page")
    existing = ProgressConfig(items=[TrackedItem(cmid=assign.id, module="assign", action="passed")])

    config = turn_all_on(existing, [assign, page])

    assert [(i.cmid, i.action) for i in config.items] == [(assign.id, "passed"), (page.id, "viewed")]
    # The stored configuration object is not modified in place.
    assert len(existing.items) == 1


def test_turn_all_on_without_configuration(db, seed):
    course = seed.course("C1")
    quiz = seed.cm(course, "quiz")
    label = seed.cm(course, "label")

    config = turn_all_on(None, [quiz, label])

    assert [(i.cmid, i.module, i.action) for i in config.items] == [(quiz.id, "quiz", "finished")]
