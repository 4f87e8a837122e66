"""
Tests for the judgement dispatcher.
"""

from ai_pictionary.server.judge import FAILURE_COMMENT, JudgementDispatcher


def test_judge_parses_and_compares(make_vision):
    vision = make_vision('Here: {"object": "Cat", "comment": "purr"}')
    d = JudgementDispatcher(vision, max_workers=1)
    v = d.judge("aW1n", "Draw a cat", "cat")
    assert v.identified_object == "cat"
    assert v.won is True
    assert vision.calls == [("aW1n", "Draw a cat")]
    d.shutdown()


def test_judge_wrong_object(make_vision):
    d = JudgementDispatcher(make_vision('{"object": "dog", "comment": "woof"}'))
    assert d.judge("x", "Draw a cat", "cat").won is False
    d.shutdown()


def test_judge_absorbs_collaborator_failure(make_vision):
    d = JudgementDispatcher(make_vision(RuntimeError("network down")))
    v = d.judge("x", "Draw a cat", "cat")
    assert v.identified_object == "unknown"
    assert v.comment == FAILURE_COMMENT
    assert v.won is False
    d.shutdown()


def test_unknown_never_matches_unknown_target_by_accident(make_vision):
    d = JudgementDispatcher(make_vision("garbage"))
    assert d.judge("x", "Draw a cat", "cat").won is False
    d.shutdown()


def test_submit_runs_callback_in_background(make_vision):
    d = JudgementDispatcher(make_vision('{"object": "owl", "comment": "hoot"}'))
    seen = []
    future = d.submit("x", "Draw an owl", "owl", seen.append)
    verdict = future.result(timeout=5)
    assert verdict.won is True
    assert seen == [verdict]
    d.shutdown()


def test_callback_failure_does_not_break_future(make_vision):
    d = JudgementDispatcher(make_vision('{"object": "owl", "comment": "hoot"}'))

    def boom(_verdict):
        raise ValueError("callback bug")

    assert d.submit("x", "Draw an owl", "owl", boom).result(timeout=5).identified_object == "owl"
    d.shutdown()
