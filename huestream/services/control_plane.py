"""CLIP v2 client for the entertainment configuration start/stop actions.

Usage:
    from huestream.services.control_plane import ControlPlaneClient

    client = ControlPlaneClient(host="192.168.1.2", username="app-key")
    await client.start_stream("6eaf...f290")
    ...
    await client.stop_stream("6eaf...f290")
"""

from __future__ import annotations

import httpx
import orjson
from loguru import logger

from ..errors import ControlPlaneError


class ControlPlaneClient:
    def __init__(
        self,
        host: str,
        username: str,
        *,
        timeout: float = 10.0,
        verify: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.host = host
        self.username = username
        self.timeout = timeout
        self.verify = verify
        self._transport = transport

    @property
    def base_url(self) -> str:
        return f"https://{self.host}/clip/v2/resource/entertainment_configuration"

    def _build_headers(self) -> dict[str, str]:
        return {
            "hue-application-key": self.username,
            "Content-Type": "application/json",
        }

    async def stream_action(self, area_id: str, action: str) -> None:
        """PUT `{"action": action}` to the entertainment configuration.

        Raises:
            ControlPlaneError: On any non-200 response, or when the bridge is unreachable
        """
        url = f"{self.base_url}/{area_id}"
        logger.debug("Entertainment action: action={} area={}", action, area_id)

        try:
            async with httpx.AsyncClient(verify=self.verify, transport=self._transport) as client:
                response = await client.put(
                    url,
                    content=orjson.dumps({"action": action}),
                    headers=self._build_headers(),
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            raise ControlPlaneError(f"{action} action for area {area_id} failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Entertainment action rejected: action={} area={} status={} body={}",
                action,
                area_id,
                response.status_code,
                response.text[:200],
            )
            raise ControlPlaneError(
                f"{action} action for area {area_id}: status code not OK",
                status_code=response.status_code,
            )

    async def start_stream(self, area_id: str) -> None:
        await self.stream_action(area_id, "start")

    async def stop_stream(self, area_id: str) -> None:
        await self.stream_action(area_id, "stop")


__all__ = ["ControlPlaneClient"]
