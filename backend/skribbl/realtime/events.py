"""Socket.IO event names and user-facing error strings."""

# Client -> server
JOIN = "room:join"
LEAVE = "room:leave"
TOGGLE_READY = "room:toggle_ready"
KICK = "room:kick"
START = "game:start"
SELECT_WORD = "game:select_word"
RESTART = "game:restart"
DRAW = "draw:stroke"
CLEAR_CANVAS = "draw:clear"
CHAT = "chat:message"

# Server -> client
ROOM_STATE = "room:state"
ROOM_JOINED = "room:joined"
ROOM_ERROR = "room:error"
PLAYER_LEFT = "room:player_left"
PLAYER_KICKED = "room:player_kicked"
YOU_WERE_KICKED = "room:kicked"
GAME_ERROR = "game:error"
WORD_CHOICES = "game:word_choices"
WORD_SELECTED = "game:word_selected"
HINT_UPDATE = "game:hint"
TIMER_TICK = "game:tick"
ROUND_END = "game:round_end"
NEXT_TURN = "game:next_turn"
GAME_FINISHED = "game:finished"
GAME_RESTARTED = "game:restarted"
CORRECT_GUESS = "guess:correct"
CHAT_SYSTEM = "chat:system"
DRAW_SYNC = "draw:sync"


ERROR_MESSAGES = {
    "invalid_payload": "Something was missing from that request.",
    "invalid_room_code": "Room codes are 4-8 letters or digits.",
    "invalid_name": "Please pick a name (up to 20 characters).",
    "banned": "You were removed from this room and can't rejoin.",
    "room_not_found": "That room no longer exists.",
    "not_in_room": "You're not in that room.",
    "only_owner": "Only the room owner can do that.",
    "already_started": "The game has already started.",
    "not_enough_players": "At least two players are needed to start.",
    "not_playing": "There's no game in progress.",
    "not_choosing": "It's not time to choose a word.",
    "not_drawer": "Only the drawer can do that.",
    "invalid_word": "Pick one of the offered words.",
    "not_finished": "You can only ready up after a game ends.",
    "cannot_kick_self": "You can't kick yourself.",
    "superseded": "The game moved on, please try again.",
    "rate_limited": "Slow down a little.",
    "retry_later": "We couldn't save that. Try again shortly.",
}


def error_payload(code: str) -> dict:
    return {"error": code, "message": ERROR_MESSAGES.get(code, "Something went wrong.")}
