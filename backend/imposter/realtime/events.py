"""Socket.IO event names shared by the handlers and the game service."""

# Inbound (client -> server)
CREATE_ROOM = "createRoom"
JOIN_ROOM = "joinRoom"
TOGGLE_READY = "toggleReady"
UPDATE_ROOM_SETTINGS = "updateRoomSettings"
GET_PUBLIC_LOBBIES = "getPublicLobbies"
LEAVE_ROOM = "leaveRoom"
START_GAME = "startGame"
SUBMIT_DESCRIPTION = "submitDescription"
SUBMIT_VOTE = "submitVote"
VOTE_KICK = "voteKick"
LOBBY_CHAT = "lobbyChatMessage"

# Outbound (server -> client)
ROOM_CREATED = "roomCreated"
ROOM_JOINED = "roomJoined"
PLAYER_JOINED = "playerJoined"
PLAYER_LEFT = "playerLeft"
PLAYER_READY_UPDATE = "playerReadyUpdate"
ROOM_SETTINGS_UPDATED = "roomSettingsUpdated"
PUBLIC_LOBBIES = "publicLobbies"
HOST_CHANGED = "hostChanged"
GAME_STARTED = "gameStarted"
NEXT_TURN = "nextTurn"
TURN_TIMER_UPDATE = "turnTimerUpdate"
START_VOTING = "startVoting"
PLAYER_VOTED = "playerVoted"
NEXT_ROUND = "nextRound"
GAME_OVER = "gameOver"
GAME_ENDED = "gameEnded"
KICKED = "kicked"
PLAYER_KICKED = "playerKicked"
KICK_VOTE_RECORDED = "kickVoteRecorded"
LOBBY_CHAT_MESSAGE = "lobbyChatMessage"
ERROR = "error"
