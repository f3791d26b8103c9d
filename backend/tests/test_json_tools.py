from blueprint_viewer.utils.json_tools import decode_json_payload, strip_code_fence


def test_plain_json():
    assert decode_json_payload('{"a": 1}') == {"a": 1}
    assert decode_json_payload("[1, 2]") == [1, 2]


def test_fenced_json():
    assert decode_json_payload('```json\n{"a": 1}\n```') == {"a": 1}
    assert decode_json_payload('```\n{"a": 1}\n```') == {"a": 1}


def test_trailing_chatter_is_ignored():
    assert decode_json_payload('{"a": "}"} and some notes') == {"a": "}"}


def test_non_json_returns_none():
    assert decode_json_payload("<svg></svg>") is None
    assert decode_json_payload("") is None
    assert decode_json_payload(None) is None
    assert decode_json_payload("{not json}") is None


def test_strip_code_fence_leaves_plain_text():
    assert strip_code_fence("  hello ") == "hello"
