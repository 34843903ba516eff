"""Payment relay HTTP client for mobile-money collection requests"""

import asyncio
import logging
import random
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
import httpx
from finance_tracker.config import settings
from finance_tracker.domain.models import CarrierService, CollectResult, GatewayTransaction
from finance_tracker.infrastructure.observability.metrics import relay_failure_counter, simulation_counter

SIMULATION_TAG = "(Simulation)"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def parse_gateway_transaction(data: Optional[Dict[str, Any]]) -> Optional[GatewayTransaction]:
    """Transaction block of a relay response, or None when absent"""
    if not data:
        return None
    return GatewayTransaction(
        pk=str(data["pk"]),
        amount=Decimal(str(data["amount"])),
        service=str(data["service"]),
        payer=str(data["payer"]),
        status=str(data["status"]),
        created_at=str(data["created_at"]),
    )


class PaymentGatewayClient:
    """Client for the backend relay in front of the MeSomb gateway"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        simulation_enabled: bool | None = None,
        simulation_delay: float | None = None,
        simulation_success_rate: float | None = None,
        rng: random.Random | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.payment_relay_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.simulation_enabled = (
            settings.simulation_fallback_enabled if simulation_enabled is None else simulation_enabled
        )
        self.simulation_delay = settings.simulation_delay_seconds if simulation_delay is None else simulation_delay
        self.simulation_success_rate = (
            settings.simulation_success_rate if simulation_success_rate is None else simulation_success_rate
        )
        self.rng = rng or random.Random()
        self._transport = transport

    async def collect(
        self,
        amount: Decimal,
        service: CarrierService,
        payer: str,
        trx_id: str | None = None,
        description: str | None = None,
    ) -> CollectResult:
        """
        Ask the relay to pull `amount` from the payer's mobile-money account.

        The payer number must already be validated for `service`. Never raises:
        - relay unreachable: simulated result (when enabled), tagged simulated
        - any other failure: success=False, status="ERROR", error=<message>
        """
        service = CarrierService(service)
        payload = {
            "amount": float(amount),
            "service": service.value,
            "payer": payer,
            "trxID": trx_id or f"savings_{_epoch_ms()}",
            "description": description or "Savings deposit",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(f"{self.base_url}/api/payments/collect", json=payload)
                response.raise_for_status()
                data = response.json()

                return CollectResult(
                    success=bool(data["success"]),
                    message=str(data.get("message") or ""),
                    status=str(data.get("status") or ("SUCCESS" if data["success"] else "FAILED")),
                    transaction=parse_gateway_transaction(data.get("transaction")),
                    error=data.get("error"),
                )

            except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                relay_failure_counter.labels(reason="unreachable").inc()
                if not self.simulation_enabled:
                    return self._error(f"Payment relay unreachable: {e}")
                logging.warning(
                    "Payment relay unreachable - falling back to simulation",
                    extra={"relay": self.base_url, "service": service.value},
                )
                return await self.simulate(amount, service, payer)
            except httpx.TimeoutException:
                relay_failure_counter.labels(reason="timeout").inc()
                return self._error(f"Payment relay timeout after {self.timeout}s")
            except httpx.HTTPStatusError as e:
                relay_failure_counter.labels(reason="http_status").inc()
                return self._error(f"HTTP error! status: {e.response.status_code}, message: {e.response.text}")
            except httpx.RequestError as e:
                relay_failure_counter.labels(reason="transport").inc()
                return self._error(f"Payment relay request failed: {e}")
            except (KeyError, ValueError, TypeError, ArithmeticError) as e:
                relay_failure_counter.labels(reason="malformed").inc()
                return self._error(f"Invalid response from payment relay: {e}")

    async def simulate(self, amount: Decimal, service: CarrierService, payer: str) -> CollectResult:
        """
        Synthetic, non-authoritative result so the deposit flow can run without a gateway.

        Always marked simulated=True and tagged in the message.
        """
        await asyncio.sleep(self.simulation_delay)
        success = self.rng.random() < self.simulation_success_rate
        simulation_counter.labels(outcome="success" if success else "failed").inc()

        if success:
            return CollectResult(
                success=True,
                message=f"Payment processed successfully {SIMULATION_TAG}",
                status="SUCCESS",
                transaction=GatewayTransaction(
                    pk=f"sim_{_epoch_ms()}",
                    amount=Decimal(str(amount)),
                    service=CarrierService(service).value,
                    payer=payer,
                    status="SUCCESS",
                    created_at=datetime.now(timezone.utc).isoformat(),
                ),
                simulated=True,
            )
        return CollectResult(
            success=False,
            message=f"Payment failed {SIMULATION_TAG}",
            status="FAILED",
            error="Simulated payment failure",
            simulated=True,
        )

    @staticmethod
    def _error(message: str) -> CollectResult:
        return CollectResult(
            success=False,
            message="Failed to process payment",
            status="ERROR",
            error=message,
        )
