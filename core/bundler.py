"""
ERC-4337 bundler client for the latency benchmark.
JSON-RPC over a shared HTTP session & receipt polling.
"""
import itertools
import time
import typing as t

import requests


class BundlerRPCError(RuntimeError):
    """
    JSON-RPC error returned by a bundler.
    """
    def __init__(self, code: int, message: str, data: t.Any = None) -> None:
        super().__init__(f"{message} (code {code})")
        self.code = code
        self.message = message
        self.data = data


class BundlerClient:
    """
    Talks to one bundler endpoint.

    Usage:
        bundler = BundlerClient("pimlico", url, session)
        op_hash = bundler.send_user_operation(op.to_rpc(), entry_point)
        receipt = bundler.wait_for_user_operation_receipt(op_hash)
    """

    def __init__(
        self,
        name: str,
        url: str,
        session: requests.Session,
        poll_interval: float = 1.0,
        request_timeout: float = 120.0,
    ) -> None:
        self.name = name
        self.url = url
        self.session = session
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self._ids = itertools.count(1)

    def rpc(self, method: str, params: t.List[t.Any]) -> t.Any:
        """
        Perform a single JSON-RPC call.

        A JSON-RPC `error` member wins over the HTTP status, since bundlers
        reject user operations with 4xx/5xx responses carrying the reason.

        Raises:
            requests.RequestException: transport or HTTP status failure.
            BundlerRPCError: the bundler answered with a JSON-RPC error.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = self.session.post(self.url, json=payload, timeout=self.request_timeout)
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            raise BundlerRPCError(
                error.get("code", -1),
                error.get("message", "unknown bundler error"),
                error.get("data"),
            )
        if response.status_code >= 400:
            # The endpoint URL carries the API key, keep it out of the message
            raise requests.HTTPError(
                f"{self.name} bundler answered HTTP {response.status_code} {response.reason}",
                response=response,
            )
        if not isinstance(body, dict):
            raise BundlerRPCError(-1, f"{self.name} bundler sent a non JSON-RPC body")
        return body.get("result")

    def supported_entry_points(self) -> t.List[str]:
        return self.rpc("eth_supportedEntryPoints", [])

    def estimate_user_operation_gas(
        self, user_op: t.Dict[str, str], entry_point: str
    ) -> t.Dict[str, int]:
        """
        Returns:
            {"preVerificationGas", "verificationGasLimit", "callGasLimit"} as ints.
        """
        result = self.rpc("eth_estimateUserOperationGas", [user_op, entry_point])
        return {
            key: to_int(result[key])
            for key in ("preVerificationGas", "verificationGasLimit", "callGasLimit")
        }

    def send_user_operation(self, user_op: t.Dict[str, str], entry_point: str) -> str:
        """Submit a signed user operation, returning its hash."""
        return self.rpc("eth_sendUserOperation", [user_op, entry_point])

    def get_user_operation_receipt(self, user_op_hash: str) -> t.Optional[t.Dict[str, t.Any]]:
        """Return the receipt, or None while the operation is not yet included."""
        return self.rpc("eth_getUserOperationReceipt", [user_op_hash])

    def wait_for_user_operation_receipt(self, user_op_hash: str) -> t.Dict[str, t.Any]:
        """
        Block until the bundler reports a receipt for `user_op_hash`.

        There is no timeout: a user operation that never lands stalls the
        caller until the process is terminated.
        """
        while True:
            receipt = self.get_user_operation_receipt(user_op_hash)
            if receipt is not None:
                return receipt
            time.sleep(self.poll_interval)


def to_int(value: t.Union[str, int]) -> int:
    """Bundlers answer with hex quantities, some with plain numbers."""
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith("0x") else int(value)
