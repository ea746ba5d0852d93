from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_DEPLOYMENT_FAILED = "TEMPLATE_DEPLOYMENT_FAILED"
    SERVICE_CREATION_FAILED = "SERVICE_CREATION_FAILED"
    FETCH_FAILED = "FETCH_FAILED"
    DEPLOY_FAILED = "DEPLOY_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    RESTART_FAILED = "RESTART_FAILED"


class GameNiteError(Exception):
    """A failure tagged with the kind the action layer reports on."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"GameNiteError({self.kind.value}, {self.message!r})"


def unauthorized() -> GameNiteError:
    return GameNiteError(ErrorKind.UNAUTHORIZED, "You must be logged in to perform this action")


def game_not_found(game_id: str) -> GameNiteError:
    return GameNiteError(ErrorKind.GAME_NOT_FOUND, f"Game not found: {game_id}")


def template_not_found(game_id: str) -> GameNiteError:
    return GameNiteError(ErrorKind.TEMPLATE_NOT_FOUND, f"Template not found for game: {game_id}")


def service_creation_failed(reason: str) -> GameNiteError:
    return GameNiteError(ErrorKind.SERVICE_CREATION_FAILED, f"Failed to create service: {reason}")


def template_deployment_failed(reason: str) -> GameNiteError:
    return GameNiteError(ErrorKind.TEMPLATE_DEPLOYMENT_FAILED, f"Failed to deploy template: {reason}")
