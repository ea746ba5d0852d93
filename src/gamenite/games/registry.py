from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServiceSource:
    image: str | None = None
    repo: str | None = None

    @property
    def is_set(self) -> bool:
        return bool(self.image or self.repo)

    @property
    def template_code(self) -> str:
        return self.image or self.repo or ""

    @classmethod
    def from_meta(cls, meta: dict | None) -> "ServiceSource":
        """Build a source from a deployment's ``meta`` blob."""
        meta = meta or {}
        image = meta.get("image")
        repo = meta.get("repo")
        return cls(
            image=image if isinstance(image, str) and image else None,
            repo=repo if isinstance(repo, str) and repo else None,
        )

    def to_dict(self) -> dict:
        return {k: v for k, v in (("image", self.image), ("repo", self.repo)) if v}


@dataclass(frozen=True)
class EnvVarTemplate:
    key: str
    value: str
    description: str | None = None


@dataclass(frozen=True)
class Game:
    id: str
    name: str
    description: str
    color: str
    image: str
    source: ServiceSource
    default_port: int
    environment_variables: tuple[EnvVarTemplate, ...] = ()
    volume_mount_path: str | None = None

    def can_deploy(self) -> bool:
        return self.source.is_set

    def environment_variables_with_port(
        self, custom: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Defaults, overridden by non-empty custom values, with PORT filled in."""
        env = {v.key: v.value for v in self.environment_variables}
        for key, value in (custom or {}).items():
            if value == "":
                continue
            env[key] = value
        if not env.get("PORT"):
            env["PORT"] = str(self.default_port)
        return env


def matches_source(game: Game, source: ServiceSource | None) -> bool:
    if source is None:
        return False
    if game.source.image and game.source.image == source.image:
        return True
    if game.source.repo and game.source.repo == source.repo:
        return True
    return False


@dataclass
class GameCatalog:
    games: list[Game] = field(default_factory=list)

    def __post_init__(self):
        self._by_id: dict[str, Game] = {g.id: g for g in self.games}

    def get_game(self, game_id: str) -> Game | None:
        return self._by_id.get(game_id)

    def list_games(self) -> list[Game]:
        return list(self._by_id.values())

    def deployable_games(self) -> list[Game]:
        return [g for g in self._by_id.values() if g.can_deploy()]

    def find_by_source(self, source: ServiceSource | None) -> Game | None:
        for game in self._by_id.values():
            if matches_source(game, source):
                return game
        return None
