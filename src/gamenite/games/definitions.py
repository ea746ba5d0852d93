from gamenite.games.registry import EnvVarTemplate, Game, GameCatalog, ServiceSource

minecraft = Game(
    id="minecraft",
    name="Minecraft",
    description="Build stuff, mine things",
    color="bg-green-600",
    image="/games/minecraft.jpg",
    source=ServiceSource(image="itzg/minecraft-server"),
    default_port=25565,
    environment_variables=(
        EnvVarTemplate("EULA", "TRUE", "Accept Minecraft EULA"),
        EnvVarTemplate("TYPE", "PAPER", "Server type"),
        EnvVarTemplate("VERSION", "LATEST", "Minecraft version"),
    ),
    volume_mount_path="/data",
)

rust = Game(
    id="rust",
    name="Rust",
    description="Get raided, rage quit, repeat",
    color="bg-orange-600",
    image="/games/rust.jpg",
    source=ServiceSource(image="didstopia/rust-server"),
    default_port=28015,
    environment_variables=(
        EnvVarTemplate("RUST_SERVER_STARTUP_ARGUMENTS", "-batchmode -load", "Server startup args"),
        EnvVarTemplate("RUST_SERVER_IDENTITY", "main", "Server identity"),
        EnvVarTemplate("RUST_SERVER_SEED", "12345", "World seed"),
        EnvVarTemplate("RUST_SERVER_WORLDSIZE", "3500", "World size"),
        EnvVarTemplate("RUST_SERVER_NAME", "My Rust Server", "Server name"),
        EnvVarTemplate("RUST_SERVER_MAXPLAYERS", "50", "Max players"),
    ),
    volume_mount_path="/steamcmd/rust",
)

factorio = Game(
    id="factorio",
    name="Factorio",
    description="The factory must grow",
    color="bg-yellow-600",
    image="/games/factorio.jpg",
    source=ServiceSource(image="factoriotools/factorio"),
    default_port=34197,
    environment_variables=(
        EnvVarTemplate("FACTORIO_SERVER_NAME", "My Factorio Server", "Server name"),
    ),
    volume_mount_path="/factorio",
)

ark = Game(
    id="ark",
    name="ARK: Survival",
    description="Tame dinos, die to dinos",
    color="bg-blue-600",
    image="/games/ark-survival.jpg",
    source=ServiceSource(image="thmhoag/arkserver"),
    default_port=7777,
    environment_variables=(
        EnvVarTemplate("SESSIONNAME", "My ARK Server", "Server session name"),
        EnvVarTemplate("SERVERMAP", "TheIsland", "Map name"),
        EnvVarTemplate("SERVERPASSWORD", "", "Server password (optional)"),
        EnvVarTemplate("ADMINPASSWORD", "admin123", "Admin password"),
        EnvVarTemplate("MAX_PLAYERS", "70", "Max players"),
    ),
    volume_mount_path="/ark",
)

GAMES: tuple[Game, ...] = (minecraft, rust, factorio, ark)


def build_catalog() -> GameCatalog:
    return GameCatalog(games=list(GAMES))
