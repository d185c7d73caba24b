"""In-memory lead service for development, the CLI and tests."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class LeadRecord:
    handle: str
    tenant_id: str
    fields: dict[str, Any]
    stage_history: list[str] = field(default_factory=list)

    @property
    def stage(self) -> str | None:
        return self.stage_history[-1] if self.stage_history else None


class InMemoryLeadService:
    """Records leads and their stage history per tenant."""

    def __init__(self, initial_stage: str | None = "new") -> None:
        self.initial_stage = initial_stage
        self.leads: dict[str, LeadRecord] = {}

    async def create_lead(self, tenant_id: str, fields: dict[str, Any]) -> str:
        handle = f"lead-{uuid.uuid4().hex[:12]}"
        record = LeadRecord(handle=handle, tenant_id=tenant_id, fields=dict(fields))
        if self.initial_stage:
            record.stage_history.append(self.initial_stage)
        self.leads[handle] = record
        logger.info(f"Created lead {handle} for tenant '{tenant_id}'")
        return handle

    async def transition_stage(self, tenant_id: str, lead_handle: str, stage_id: str) -> None:
        record = self.leads.get(lead_handle)
        if record is None or record.tenant_id != tenant_id:
            raise KeyError(f"Unknown lead '{lead_handle}' for tenant '{tenant_id}'")
        record.stage_history.append(stage_id)
        logger.info(f"Lead {lead_handle} moved to stage '{stage_id}'")

    def leads_for(self, tenant_id: str) -> list[LeadRecord]:
        return [record for record in self.leads.values() if record.tenant_id == tenant_id]
