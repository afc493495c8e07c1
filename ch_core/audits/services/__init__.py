from ch_core.audits.services.action_plans import ActionPlanService
from ch_core.audits.services.completions import AuditCompletionService
from ch_core.audits.services.resident_items import ResidentAuditItemService
from ch_core.audits.services.templates import AuditTemplateService

__all__ = [
    "ActionPlanService",
    "AuditCompletionService",
    "AuditTemplateService",
    "ResidentAuditItemService",
]
