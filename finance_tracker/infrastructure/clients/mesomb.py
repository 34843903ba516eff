"""MeSomb gateway wrapper used by the payment relay"""

import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pymesomb.operations import PaymentOperation
from pymesomb.utils import RandomGenerator
from starlette.concurrency import run_in_threadpool
from finance_tracker.config import settings
from finance_tracker.domain.exceptions import PaymentGatewayError
from finance_tracker.domain.models import CarrierService
from finance_tracker.infrastructure.observability.metrics import gateway_failure_counter


def _field(obj: Any, *names: str, default: Any = None) -> Any:
    """First present attribute or key among `names` (SDK versions disagree on naming)"""
    for name in names:
        if isinstance(obj, dict) and obj.get(name) is not None:
            return obj[name]
        value = getattr(obj, name, None)
        if value is not None:
            return value
    return default


class MesombGateway:
    """Collections through the MeSomb SDK"""

    def __init__(
        self,
        application_key: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
    ):
        self.application_key = application_key or settings.mesomb_application_key
        self.access_key = access_key or settings.mesomb_access_key
        self.secret_key = secret_key or settings.mesomb_secret_key

    @property
    def configured(self) -> bool:
        return bool(self.application_key and self.access_key and self.secret_key)

    async def collect(
        self,
        amount: Decimal,
        service: CarrierService,
        payer: str,
        trx_id: str,
        description: str | None = None,
    ) -> Dict[str, Any]:
        """
        Run one collection and normalize the SDK response.

        Returns {success, message, status, transaction}. When the SDK answers
        without a transaction block a synthetic one echoes the request.

        Raises:
            PaymentGatewayError: gateway not configured or SDK call failed
        """
        if not self.configured:
            raise PaymentGatewayError("MeSomb credentials are not configured")

        operation = PaymentOperation(self.application_key, self.access_key, self.secret_key)
        try:
            response = await run_in_threadpool(
                operation.make_collect,
                amount=int(amount),
                service=CarrierService(service).value,
                payer=payer,
                nonce=RandomGenerator.nonce(),
                trx_id=trx_id,
                extra={"description": description} if description else None,
            )
        except Exception as e:
            gateway_failure_counter.inc()
            raise PaymentGatewayError(str(e) or e.__class__.__name__) from e

        return self._normalize(response, amount, service, payer)

    async def fetch_status(self, reference: str) -> Optional[str]:
        """
        Status the gateway itself holds for `reference`, or None when it
        does not know the transaction.

        Raises:
            PaymentGatewayError: gateway not configured or SDK call failed
        """
        if not self.configured:
            raise PaymentGatewayError("MeSomb credentials are not configured")

        operation = PaymentOperation(self.application_key, self.access_key, self.secret_key)
        try:
            transactions = await run_in_threadpool(operation.get_transactions, [reference])
        except Exception as e:
            gateway_failure_counter.inc()
            raise PaymentGatewayError(str(e) or e.__class__.__name__) from e

        for transaction in transactions or []:
            if str(_field(transaction, "pk", default="")) == reference:
                status = _field(transaction, "status")
                return str(status) if status is not None else None
        return None

    @staticmethod
    def _normalize(response: Any, amount: Decimal, service: CarrierService, payer: str) -> Dict[str, Any]:
        success = bool(_field(response, "success", default=False))
        status = str(_field(response, "status", default="SUCCESS" if success else "FAILED"))
        transaction: Optional[Any] = _field(response, "transaction")

        if transaction is not None:
            block = {
                "pk": str(_field(transaction, "pk", default=f"mesomb_{int(time.time() * 1000)}")),
                "amount": float(_field(transaction, "amount", default=amount)),
                "service": str(_field(transaction, "service", default=CarrierService(service).value)),
                "payer": str(_field(transaction, "payer", "b_party", default=payer)),
                "status": str(_field(transaction, "status", default=status)),
                "created_at": str(_field(transaction, "created_at", "ts", default=datetime.now(timezone.utc).isoformat())),
            }
        else:
            block = {
                "pk": f"mesomb_{int(time.time() * 1000)}",
                "amount": float(amount),
                "service": CarrierService(service).value,
                "payer": payer,
                "status": status,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }

        return {
            "success": success,
            "message": str(_field(response, "message", default="")),
            "status": status,
            "transaction": block,
        }
