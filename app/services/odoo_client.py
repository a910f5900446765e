# ================================
# ODOO XML-RPC CLIENT (services/odoo_client.py)
# ================================

import httpx
import logging
import xmlrpc.client
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional
from xml.parsers.expat import ExpatError

from app.config import settings
from app.core.exceptions import ErpError

logger = logging.getLogger(__name__)

# ================================
# FIELD DECODING
# ================================

@dataclass(frozen=True)
class Many2One:
    """
    Normalized many2one value.

    Odoo returns a relation either as ``[id, "label"]``, as a bare id or as
    ``False``. Everything past this module works with ``Many2One`` only:
    ``id is None`` means absent, ``label`` is set when Odoo sent one.
    """
    id: Optional[int] = None
    label: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "Many2One":
        if raw is None or isinstance(raw, bool):
            return ABSENT
        if isinstance(raw, (list, tuple)):
            if not raw:
                return ABSENT
            record_id = odoo_int(raw[0])
            if record_id is None:
                return ABSENT
            label = odoo_text(raw[1]) if len(raw) > 1 else None
            return cls(id=record_id, label=label)
        record_id = odoo_int(raw)
        return cls(id=record_id) if record_id is not None else ABSENT

    @property
    def is_absent(self) -> bool:
        return self.id is None

ABSENT = Many2One()

def odoo_text(value: Any) -> Optional[str]:
    """Char fields: Odoo sends False for empty values"""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None

def odoo_int(value: Any) -> Optional[int]:
    """Integer ids/years: False, 0 and garbage become None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None

def odoo_ids(value: Any) -> List[int]:
    """many2many/one2many fields arrive as a list of ids"""
    if not isinstance(value, (list, tuple)):
        return []
    return [record_id for record_id in (odoo_int(v) for v in value) if record_id is not None]

# ================================
# SESSION
# ================================

class OdooSession:
    """Authenticated ERP session, valid for one request"""

    def __init__(self, rpc: "OdooRPCClient", http: httpx.AsyncClient, uid: int):
        self._rpc = rpc
        self._http = http
        self.uid = uid

    async def execute_kw(
        self,
        model: str,
        method: str,
        args: List[Any],
        kwargs: Optional[Dict[str, Any]] = None
    ) -> Any:
        logger.debug(f"Odoo execute_kw {model}.{method}")
        return await self._rpc.call(
            self._http,
            "object",
            "execute_kw",
            self._rpc.db,
            self.uid,
            self._rpc.password,
            model,
            method,
            args,
            kwargs or {},
        )

    async def search_read(
        self,
        model: str,
        domain: List[Any],
        fields: List[str],
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {"fields": fields}
        if limit is not None:
            kwargs["limit"] = limit
        records = await self.execute_kw(model, "search_read", [domain], kwargs)
        return records or []

    async def read(self, model: str, ids: List[int], fields: List[str]) -> List[Dict[str, Any]]:
        records = await self.execute_kw(model, "read", [ids], {"fields": fields})
        return records or []

    async def create(self, model: str, values: Dict[str, Any]) -> int:
        new_id = await self.execute_kw(model, "create", [values])
        record_id = odoo_int(new_id)
        if record_id is None:
            raise ErpError(f"ERP returned no id for new {model} record")
        return record_id

# ================================
# CLIENT
# ================================

class OdooRPCClient:
    """XML-RPC client for the Odoo external API (/xmlrpc/2/common, /xmlrpc/2/object)"""

    def __init__(
        self,
        url: Optional[str] = None,
        db: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = (url or settings.ODOO_URL or "").rstrip("/")
        self.db = db or settings.ODOO_DB
        self.username = username or settings.ODOO_USER
        self.password = password or settings.ODOO_API_KEY
        self.timeout = timeout or settings.ODOO_TIMEOUT
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return all([self.url, self.db, self.username, self.password])

    def _check_config(self):
        if not self.is_configured:
            raise ErpError("ERP credentials not configured")

    async def call(self, http: httpx.AsyncClient, service: str, method: str, *params: Any) -> Any:
        """Single XML-RPC round trip; every failure surfaces as ErpError"""
        payload = xmlrpc.client.dumps(params, methodname=method, allow_none=True)

        try:
            response = await http.post(
                f"{self.url}/xmlrpc/2/{service}",
                content=payload.encode("utf-8"),
                headers={"Content-Type": "text/xml"}
            )
            response.raise_for_status()
            result, _ = xmlrpc.client.loads(response.content)

        except xmlrpc.client.Fault as e:
            logger.error(f"Odoo fault in {method}: {e.faultString}")
            raise ErpError(f"ERP fault: {e.faultString}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Odoo HTTP error: {e.response.status_code} - {e.response.text}")
            raise ErpError(f"ERP HTTP error: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Request error to Odoo: {str(e)}")
            raise ErpError("Failed to connect to ERP")
        except (ExpatError, xmlrpc.client.ResponseError) as e:
            logger.error(f"Invalid XML-RPC response from Odoo: {str(e)}")
            raise ErpError("Invalid response from ERP")

        return result[0] if result else None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[OdooSession]:
        """Authenticate and yield a session; no session is cached across requests"""
        self._check_config()

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as http:
            uid = await self.call(
                http, "common", "authenticate",
                self.db, self.username, self.password, {}
            )
            if not odoo_int(uid):
                logger.error(f"Odoo authentication failed for user {self.username}")
                raise ErpError("ERP authentication failed")

            yield OdooSession(self, http, int(uid))
