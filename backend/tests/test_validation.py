import pytest

from skribbl.utils.validation import (
    clean_stroke,
    normalize_room_code,
    sanitize_chat_message,
    sanitize_player_name,
    strip_html,
    validate_drawing_data,
    validate_game_settings,
    validate_room_code,
)


STROKE = {'x': 10, 'y': 20.5, 'prevX': 0, 'prevY': 0, 'color': '#FF00aa', 'lineWidth': 5, 'type': 'draw'}


def test_strip_html_drops_script_bodies():
    assert strip_html('<b>hi</b>') == 'hi'
    assert strip_html('<script>alert(1)</script>John') == 'John'


@pytest.mark.parametrize('raw,expected', [
    ('  Alice  ', 'Alice'),
    ('<i>Bob</i>', 'Bob'),
    ('Car\x00ol', 'Carol'),
    ('x' * 30, 'x' * 20),
    (None, ''),
    (42, ''),
])
def test_sanitize_player_name(raw, expected):
    assert sanitize_player_name(raw) == expected


def test_sanitize_chat_message():
    assert sanitize_chat_message(' hello <b>there</b> ') == 'hello there'
    assert len(sanitize_chat_message('a' * 500)) == 200
    assert sanitize_chat_message(['not', 'text']) == ''


def test_room_codes():
    assert normalize_room_code(' abcd12 ') == 'ABCD12'
    assert normalize_room_code('abc') is None
    assert normalize_room_code('ABCDEFGHI') is None
    assert normalize_room_code('AB-CD') is None
    assert normalize_room_code(1234) is None
    assert validate_room_code('Z9Z9')


def test_valid_stroke():
    assert validate_drawing_data(STROKE)
    assert validate_drawing_data(dict(STROKE, type='erase'))


@pytest.mark.parametrize('override', [
    {'x': -1},
    {'y': 10001},
    {'prevX': '5'},
    {'prevY': True},
    {'color': 'red'},
    {'color': '#12345'},
    {'lineWidth': 0},
    {'lineWidth': 51},
    {'type': 'fill'},
])
def test_invalid_strokes(override):
    assert not validate_drawing_data(dict(STROKE, **override))


def test_invalid_stroke_shapes():
    assert not validate_drawing_data(None)
    assert not validate_drawing_data([1, 2, 3])
    assert not validate_drawing_data({k: v for k, v in STROKE.items() if k != 'x'})


def test_clean_stroke_drops_extra_keys():
    padded = dict(STROKE, junk='x' * 1000, userId='spoofed')
    assert validate_drawing_data(padded)
    assert clean_stroke(padded) == STROKE


def test_game_settings_defaults_and_ranges():
    assert validate_game_settings(None) == {'draw_time': 80, 'max_rounds': 3, 'difficulty': None}
    assert validate_game_settings({'drawTime': 120, 'maxRounds': 5, 'difficulty': 'hard'}) == {
        'draw_time': 120,
        'max_rounds': 5,
        'difficulty': 'hard',
    }
    assert validate_game_settings({'drawTime': 10, 'maxRounds': 0, 'difficulty': 'extreme'}) == {
        'draw_time': 80,
        'max_rounds': 3,
        'difficulty': None,
    }
    assert validate_game_settings({'drawTime': 45.5})['draw_time'] == 80
    assert validate_game_settings({'drawTime': '60'})['draw_time'] == 80
