# /*
# Copyright 2026 The Meshex Manager Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Ingress gateway discovery and product page probing."""

from __future__ import annotations

from dataclasses import dataclass

import sh
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from meshex_manager import console, logger
from meshex_manager.constants import (
    INGRESS_GATEWAY_SERVICE,
    INGRESS_HTTP_PORT_NAME,
    NS_ISTIO_SYSTEM,
    PRODUCT_PAGE_PATH,
)
from meshex_manager.errors import IngressNotReadyError
from meshex_manager.utils import run_kubectl


@dataclass(frozen=True)
class GatewayAddress:
    """External address of the ingress gateway.

    Attributes:
        host: Load balancer IP address.
        port: HTTP port exposed by the gateway service.
    """

    host: str
    port: str

    @property
    def gateway_url(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        return f"http://{self.gateway_url}{PRODUCT_PAGE_PATH}"


def _gateway_jsonpath(expression: str) -> str:
    ok, stdout, stderr = run_kubectl([
        "-n", NS_ISTIO_SYSTEM, "get", "service", INGRESS_GATEWAY_SERVICE,
        "-o", f"jsonpath={expression}",
    ])
    if not ok:
        raise RuntimeError(f"Failed to query service {INGRESS_GATEWAY_SERVICE}: {stderr[:200]}")
    return stdout.strip()


def query_gateway_address() -> GatewayAddress:
    """Read the ingress gateway's load balancer IP and HTTP port once.

    Raises:
        IngressNotReadyError: If the load balancer has no address or port yet.
        RuntimeError: If the gateway service cannot be queried.
    """
    host = _gateway_jsonpath("{.status.loadBalancer.ingress[0].ip}")
    port = _gateway_jsonpath(f'{{.spec.ports[?(@.name=="{INGRESS_HTTP_PORT_NAME}")].port}}')
    if not host or not port:
        raise IngressNotReadyError(
            f"Ingress gateway has no external address yet (host={host or '-'}, port={port or '-'})"
        )
    return GatewayAddress(host=host, port=port)


def wait_for_gateway_address(attempts: int, interval_seconds: int) -> GatewayAddress:
    """Poll the ingress gateway until its load balancer address is assigned.

    Args:
        attempts: Maximum number of queries.
        interval_seconds: Seconds to wait between queries.

    Returns:
        The gateway address.

    Raises:
        IngressNotReadyError: If no address is assigned after all attempts.
    """
    console.print("[yellow]\u2139\ufe0f  Waiting for the ingress gateway load balancer address...[/yellow]")

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(interval_seconds),
        retry=retry_if_exception_type(IngressNotReadyError),
        reraise=True,
    )
    def _attempt() -> GatewayAddress:
        try:
            return query_gateway_address()
        except IngressNotReadyError as err:
            logger.debug("%s", err)
            raise

    address = _attempt()
    console.print(f"[green]\u2705 Ingress gateway at {address.gateway_url}[/green]")
    return address


def product_page_status(address: GatewayAddress) -> int:
    """Request the product page and return the HTTP status code.

    Args:
        address: Ingress gateway address.

    Returns:
        The HTTP status code, or 0 if the gateway could not be reached.
    """
    try:
        status = str(sh.curl(
            "--silent", "--output", "/dev/null",
            "--write-out", "%{http_code}",
            address.url,
        )).strip()
    except sh.ErrorReturnCode as err:
        logger.debug("Product page unreachable: %s", err)
        return 0
    return int(status) if status.isdigit() else 0
