import pytest

from packer_cli.wire import LineDecodeError, decode_line, encode_fields


def test_decode_line_splits_fields():
    assert decode_line("1609459200,docker,artifact,0,id-123,/out/image.tar") == [
        "1609459200",
        "docker",
        "artifact",
        "0",
        "id-123",
        "/out/image.tar",
    ]


def test_decode_line_keeps_empty_target_and_ignores_line_terminator():
    assert decode_line("1609459200,,version,1.9.4\r\n") == ["1609459200", "", "version", "1.9.4"]


def test_decode_line_unescapes_commas_and_newlines():
    line = "1,,ui,say,first%!(PACKER_COMMA) second\\nthird\\r"
    assert decode_line(line)[4] == "first, second\nthird\r"


def test_decode_line_keeps_unknown_escapes():
    assert decode_line("1,,ui,say,C:\\temp\\box")[4] == "C:\\temp\\box"


def test_decode_line_rejects_unterminated_escape():
    with pytest.raises(LineDecodeError) as excinfo:
        decode_line("1,,ui,say,dangling\\")
    assert excinfo.value.field_index == 4


def test_decode_line_does_not_assume_field_count():
    assert decode_line("only-one-field") == ["only-one-field"]


@pytest.mark.parametrize(
    "fields",
    [
        ["1609459200", "", "ui", "say", "plain"],
        ["1", "amazon-ebs", "ui", "message", "a, b\nc\r\nd"],
        ["1", "t", "error", "trailing backslash \\"],
        ["1", "t", "error", "literal \\n is not a newline"],
        ["1", "", "unknown-tag", "", ",", ""],
    ],
)
def test_encoded_fields_decode_to_original_values(fields):
    assert decode_line(encode_fields(fields)) == fields
