"""
Network management for the bundler latency benchmark.
Web3 RPC Connection & Bundler Endpoint Management.
"""
import typing as t
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3
from web3.providers import HTTPProvider

from config import CHAIN_ID, BenchmarkConfig, SetupError
from .bundler import BundlerClient


class ConnectionManager:
    """
    Manages the chain RPC connection and bundler clients over one HTTP Session.
    """
    def __init__(self, config: BenchmarkConfig) -> None:
        self.config = config
        self._web3: t.Optional[Web3] = None
        self._bundlers: t.Dict[str, BundlerClient] = {}
        # Create a single session for this process
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        """
        Creates an HTTP session with connection pooling and retries on
        transient gateway errors.
        """
        session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=Retry(
                total=5,
                backoff_factor=0.5,
                status_forcelist=[502, 503, 504]
            )
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def get_web3(self) -> Web3:
        """
        Returns the Web3 instance for the configured RPC endpoint.
        """
        if self._web3 is None:
            provider = HTTPProvider(
                self.config.rpc_url,
                session=self._session,
                request_kwargs={"timeout": 120}
            )
            self._web3 = Web3(provider)
        return self._web3

    def check_rpc(self, expected_chain_id: int = CHAIN_ID) -> int:
        """
        Fail fast when the RPC node is unreachable or serves another chain.

        Returns:
            The chain id reported by the node.
        """
        web3 = self.get_web3()
        try:
            chain_id = web3.eth.chain_id
        except Exception as e:
            raise SetupError(f"RPC endpoint {self.config.rpc_url} unreachable: {e}") from e
        if chain_id != expected_chain_id:
            raise SetupError(
                f"RPC endpoint serves chain {chain_id}, bundlers are configured for {expected_chain_id}"
            )
        print(f"[Network] Connected to chain {chain_id}")
        return chain_id

    def available_bundlers(self, names: t.Iterable[str]) -> t.List[str]:
        """
        Filter `names` down to bundlers with a configured endpoint, keeping order.
        """
        available = []
        for name in names:
            if name in self.config.bundler_urls:
                available.append(name)
            else:
                print(f"[Network] No endpoint configured for {name}, skipping")
        return available

    def get_bundler(self, name: str) -> BundlerClient:
        """
        Returns a (cached) bundler client by name.
        """
        if name in self._bundlers:
            return self._bundlers[name]

        url = self.config.bundler_urls.get(name)
        if url is None:
            raise SetupError(f"Unknown bundler: {name}")

        bundler = BundlerClient(
            name,
            url,
            self._session,
            poll_interval=self.config.poll_interval,
        )
        self._bundlers[name] = bundler
        return bundler

    def check_bundler(self, name: str) -> BundlerClient:
        """
        Fail fast when a bundler is unreachable or does not serve the
        configured EntryPoint.
        """
        bundler = self.get_bundler(name)
        try:
            entry_points = bundler.supported_entry_points()
        except Exception as e:
            raise SetupError(f"Bundler {name} unreachable: {e}") from e
        if self.config.entry_point.lower() not in [ep.lower() for ep in entry_points or []]:
            raise SetupError(
                f"Bundler {name} does not support EntryPoint {self.config.entry_point}"
            )
        print(f"[Network] Bundler {name} ready")
        return bundler
