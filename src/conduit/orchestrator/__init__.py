from conduit.orchestrator.agent import DEFAULT_SYSTEM_PROMPT, Agent, build_agent
from conduit.orchestrator.batch import BatchRunner

__all__ = ["DEFAULT_SYSTEM_PROMPT", "Agent", "BatchRunner", "build_agent"]
