# Inbound
ROOM_CREATE = "room:create"
ROOM_JOIN = "room:join"
ROOM_LEAVE = "room:leave"
ROOM_SETTINGS = "room:settings"
TEAM_ADD = "team:add"
TEAM_REMOVE = "team:remove"
TEAM_MOVE = "team:move"
GAME_START = "game:start"
CLUE_SUBMIT = "clue:submit"
GUESS_SUBMIT = "guess:submit"
STEAL_SUBMIT = "steal:submit"
ROUND_PASS = "round:pass"
GAME_PLAY_AGAIN = "game:play_again"

# Outbound
ROOM_CREATED = "room:created"
ROOM_JOINED = "room:joined"
ROOM_STATE = "room:state"
ROOM_ERROR = "room:error"
GAME_ERROR = "game:error"
TIMER_TICK = "timer:tick"
ROUND_RESULT = "round:result"
GUESS_WRONG = "guess:wrong"
GAME_OVER = "game:over"
