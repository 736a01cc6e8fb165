"""
Configuration module for the bundler latency benchmark.
Single source of truth for chain constants & runtime settings.
"""
import os
import typing as t
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Constants
CHAIN_ID: int = 8453  # Base mainnet
ENTRY_POINT_V06: str = "0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789"

# Biconomy smart account v2 deployment (same address on every chain)
BICONOMY_FACTORY: str = "0x000000a56Aaca3e9a4C479ea6b6CD0DbcB6634F5"
BICONOMY_ECDSA_MODULE: str = "0x0000001c5b32F37F5beA87BDD5374eB2aC54eA8e"
BICONOMY_ACCOUNT_INDEX: int = 0

NUM_ITERATIONS: int = 100
OUTPUT_DIR: str = "output"
MAX_PRIORITY_FEE_GWEI: str = "0.002"
TRANSFER_VALUE_RANGE: int = 10_000  # wei, random self-transfer in [0, range)
RECEIPT_POLL_INTERVAL: float = 1.0  # seconds

# Bundler endpoints
BICONOMY_BUNDLER_URL: str = (
    "https://bundler.biconomy.io/api/v2/8453/nJPK7B3ru.dd7f7861-190d-41bd-af80-6877f74b8f44"
)
ALCHEMY_BUNDLER_URL: str = "https://base-mainnet.g.alchemy.com/v2/{api_key}"
PIMLICO_BUNDLER_URL: str = "https://api.pimlico.io/v2/base/rpc?apikey={api_key}"


class SetupError(RuntimeError):
    """Raised when the benchmark cannot be set up before the trial loop."""


@dataclass
class BenchmarkConfig:
    """
    Runtime settings for one benchmark run.

    Built once at startup (see `from_env`) and passed explicitly to the
    experiment; nothing reads the environment after that.
    """
    rpc_url: str
    private_key: str
    entry_point: str = ENTRY_POINT_V06
    iterations: int = NUM_ITERATIONS
    output_dir: str = OUTPUT_DIR
    max_priority_fee_gwei: str = MAX_PRIORITY_FEE_GWEI
    poll_interval: float = RECEIPT_POLL_INTERVAL
    bundler_urls: t.Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, env_file: t.Optional[str] = None) -> "BenchmarkConfig":
        """
        Create the configuration from environment variables (and `.env`).
        """
        load_dotenv(env_file)
        env = os.environ

        bundler_urls: t.Dict[str, str] = {
            "biconomy": env.get("BICONOMY_BUNDLER_URL", BICONOMY_BUNDLER_URL),
        }
        alchemy_key = env.get("ALCHEMY_API_KEY")
        if alchemy_key:
            bundler_urls["alchemy"] = ALCHEMY_BUNDLER_URL.format(api_key=alchemy_key)
        pimlico_key = env.get("PIMLICO_API_KEY")
        if pimlico_key:
            bundler_urls["pimlico"] = PIMLICO_BUNDLER_URL.format(api_key=pimlico_key)

        try:
            iterations = int(env.get("NUM_ITERATIONS", str(NUM_ITERATIONS)))
            poll_interval = float(env.get("POLL_INTERVAL", str(RECEIPT_POLL_INTERVAL)))
        except ValueError as exc:
            raise SetupError(f"Invalid numeric setting: {exc}") from exc

        return cls(
            rpc_url=env.get("RPC_URL", ""),
            private_key=env.get("PRIVATE_KEY", ""),
            entry_point=env.get("ENTRY_POINT", ENTRY_POINT_V06),
            iterations=iterations,
            output_dir=env.get("OUTPUT_DIR", OUTPUT_DIR),
            max_priority_fee_gwei=env.get("MAX_PRIORITY_FEE_GWEI", MAX_PRIORITY_FEE_GWEI),
            poll_interval=poll_interval,
            bundler_urls=bundler_urls,
        )

    def validate(self) -> None:
        """
        Check the settings the trial loop depends on.

        Raises:
            SetupError: on the first missing or invalid setting.
        """
        if not self.rpc_url:
            raise SetupError("RPC_URL is not set")
        if not self.private_key:
            raise SetupError("PRIVATE_KEY is not set")
        if self.iterations < 0:
            raise SetupError(f"NUM_ITERATIONS must be >= 0, got {self.iterations}")
        if self.poll_interval <= 0:
            raise SetupError(f"POLL_INTERVAL must be > 0, got {self.poll_interval}")

    def output_path(self, filename: str) -> str:
        return os.path.join(self.output_dir, filename)
