from convoflow.actions.dispatcher import SideEffectDispatcher, normalize_stage
from convoflow.actions.effects import CreateLead, SideEffect, TransitionStage
from convoflow.actions.leads import InMemoryLeadService

__all__ = [
    "CreateLead",
    "TransitionStage",
    "SideEffect",
    "SideEffectDispatcher",
    "InMemoryLeadService",
    "normalize_stage",
]
