"""
Tests for the tolerant verdict parser.
"""

import json
import time

from ai_pictionary.shared.verdict import Verdict, normalize_object, parse_verdict


def test_plain_json():
    v = parse_verdict('{"object": "cat", "comment": "nice try"}')
    assert v.identified_object == "cat"
    assert v.comment == "nice try"


def test_json_embedded_in_prose():
    text = 'Sure! Here is my answer: {"object":"cat","comment":"nice try"} Hope that helps.'
    v = parse_verdict(text)
    assert v.identified_object == "cat"
    assert v.comment == "nice try"


def test_markdown_fenced_json():
    text = '```json\n{\n  "object": "Elephant ",\n  "comment": "Big ears!"\n}\n```'
    v = parse_verdict(text)
    assert v.identified_object == "elephant"
    assert v.comment == "Big ears!"


def test_object_is_normalized_but_comment_verbatim():
    v = parse_verdict('{"object": "  ICE Cream ", "comment": "  Yum, \\"cone\\" "}')
    assert v.identified_object == "ice cream"
    assert v.comment == '  Yum, "cone" '


def test_error_payload():
    body = json.dumps({"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}})
    v = parse_verdict(body)
    assert v.to_dict() == {"object": "unknown", "comment": "API Error: API key not valid"}


def test_error_payload_takes_priority_over_verdict_object():
    text = '{"error": {"message": "quota"}} {"object": "cat", "comment": "x"}'
    assert parse_verdict(text).comment == "API Error: quota"


def test_truncated_error_payload():
    text = '{"error": {"code": 503, "message": "The model is overloaded", "status": '
    v = parse_verdict(text)
    assert v.identified_object == "unknown"
    assert v.comment == "API Error: The model is overloaded"


def test_error_without_message():
    v = parse_verdict('{"error": "boom"}')
    assert v.to_dict() == {"object": "unknown", "comment": "API Error occurred"}


def test_skips_objects_without_both_keys():
    text = '{"thinking": "hmm"} then {"object": "dog", "comment": "woof"}'
    assert parse_verdict(text).identified_object == "dog"


def test_partial_json_falls_back_to_key_scraping():
    text = 'Result -> {"object": "Bicycle", "comment": "Two wheels and a \\"bell\\"", '
    v = parse_verdict(text)
    assert v.identified_object == "bicycle"
    assert v.comment == 'Two wheels and a "bell"'


def test_single_quoted_pseudo_json():
    v = parse_verdict("{'object': 'fish', 'comment': 'blub'}")
    assert v.identified_object == "fish"
    assert v.comment == "blub"


def test_scraping_without_comment_value_keeps_text():
    text = 'object: "owl" and no comment'
    v = parse_verdict(text)
    assert v.identified_object == "owl"
    assert v.comment == text


def test_garbage_text_is_unknown():
    v = parse_verdict("I cannot tell what this is.")
    assert v.identified_object == "unknown"
    assert v.comment == "I cannot tell what this is."


def test_fallback_comment_is_truncated():
    v = parse_verdict("x" * 500)
    assert v.identified_object == "unknown"
    assert len(v.comment) == 100


def test_empty_object_becomes_unknown():
    assert parse_verdict('{"object": "", "comment": "blank"}').identified_object == "unknown"


def test_never_raises():
    v = parse_verdict(None)  # type: ignore[arg-type]
    assert v.to_dict() == {"object": "unknown", "comment": "Parsing error occurred"}


def test_to_json_is_single_line_and_escaped():
    v = Verdict("cat", 'He said "meow"\nthen left')
    text = v.to_json()
    assert "\n" not in text
    assert json.loads(text) == {"object": "cat", "comment": 'He said "meow"\nthen left'}


def test_reparse_of_own_output():
    v = Verdict("teddy bear", "Cuddly | WON: maybe")
    assert parse_verdict(v.to_json()) == v


def test_matches_and_outcome():
    v = Verdict("Cat ", "x")
    assert v.matches(" cat")
    assert v.with_outcome("CAT").won is True
    assert v.with_outcome("dog").won is False
    assert normalize_object("  Soccer Ball ") == "soccer ball"


def test_unterminated_backslash_run_returns_quickly():
    text = 'object comment "' + "\\" * 40
    start = time.monotonic()
    v = parse_verdict(text)
    assert time.monotonic() - start < 1.0
    assert v.identified_object == "unknown"


def test_long_unterminated_quote_returns_quickly():
    text = "object: 'cat\\'s " + "\\x" * 5000 + " comment"
    start = time.monotonic()
    v = parse_verdict(text)
    assert time.monotonic() - start < 1.0
    assert v.identified_object == "unknown"
