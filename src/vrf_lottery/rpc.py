from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx

from .errors import RpcError


def _parse_word(value: Any) -> int:
    # Words are uint256; services send them as hex or decimal strings.
    if isinstance(value, bool):
        raise RpcError(f"Random word is not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            pass
    raise RpcError(f"Random word is not an integer: {value!r}")


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self._next_id = 1

    def close(self) -> None:
        self.client.close()

    def _post(self, method: str, params: List[Any]) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": method,
            "params": params,
        }
        self._next_id += 1
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise RpcError(f"{method}: response is not JSON: {e}") from e
        if "error" in data:
            raise RpcError(f"RPC error: {data['error']}")
        return data

    def request_random_words(
        self,
        key_hash: str,
        subscription_id: int,
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
        native_payment: bool,
    ) -> int:
        """Submits a request and returns the service's request id."""
        data = self._post(
            "vrf_requestRandomWords",
            [
                {
                    "keyHash": key_hash,
                    "subId": str(subscription_id),
                    "requestConfirmations": request_confirmations,
                    "callbackGasLimit": callback_gas_limit,
                    "numWords": num_words,
                    "extraArgs": {"nativePayment": native_payment},
                }
            ],
        )
        result = data.get("result")
        if result is None:
            raise RpcError("vrf_requestRandomWords returned no request id.")
        return _parse_word(result)

    def get_random_words(self, request_id: int) -> Optional[List[int]]:
        """
        Returns the fulfilled words, or None while the request is pending.
        Accepts either a bare list or {"randomWords": [...]}.
        """
        data = self._post("vrf_getRandomWords", [str(request_id)])
        result = data.get("result")
        if result is None:
            return None
        if isinstance(result, dict):
            result = result.get("randomWords")
        if not isinstance(result, list):
            raise RpcError(
                f"Request {request_id}: unexpected fulfillment payload {result!r}"
            )
        return [_parse_word(w) for w in result]
