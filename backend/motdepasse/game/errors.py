from __future__ import annotations


class GameError(Exception):
    """Expected, user-correctable rejection of an action.

    ``code`` is the stable identifier sent to clients; ``message`` is a
    human readable explanation. Raising one never leaves partial state.
    """

    code = "game_error"
    message = "Action impossible"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        if code:
            self.code = code
        if message:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": self.code, "message": self.message}


class RoomNotFound(GameError):
    code = "room_not_found"
    message = "Code de partie invalide"


class GameAlreadyStarted(GameError):
    code = "game_already_started"
    message = "La partie a déjà commencé"


class RoomFull(GameError):
    code = "room_full"
    message = "La partie est complète"


class InvalidName(GameError):
    code = "invalid_name"
    message = "Pseudo invalide"


class InvalidSettings(GameError):
    code = "invalid_settings"
    message = "Réglages invalides"


class NotHost(GameError):
    code = "only_host"
    message = "Seul l'hôte peut faire ça"


class NotEnoughPlayers(GameError):
    code = "not_enough_players"
    message = "Il faut au moins 2 équipes avec des joueurs"


class WrongPhase(GameError):
    code = "wrong_phase"
    message = "Ce n'est pas le moment"


class NotYourTurn(GameError):
    code = "not_your_turn"
    message = "Ce n'est pas ton tour"


class InvalidClue(GameError):
    code = "invalid_clue"
    message = "Indice invalide"


class TeamLimit(GameError):
    code = "team_limit"
    message = "Nombre d'équipes hors limites"


class UnknownTeam(GameError):
    code = "unknown_team"
    message = "Équipe inconnue"


class UnknownPlayer(GameError):
    code = "unknown_player"
    message = "Joueur inconnu"


class UnknownCategory(GameError):
    code = "unknown_category"
    message = "Catégorie inconnue"


class WordBankExhausted(GameError):
    code = "words_exhausted"
    message = "Plus aucun mot disponible"
