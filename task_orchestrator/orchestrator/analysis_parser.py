"""Turn chat-model output into a TaskAnalysis.

Three tiers, tried in order by :func:`parse_with_fallback`:

1. :func:`parse_structured` reads the first JSON object in the reply and
   validates each field on its own.
2. :func:`parse_heuristic` infers the same fields from keywords in the raw
   text. It never fails.
3. :func:`default_analysis` is the fixed answer used when the model could not
   be reached at all.
"""

import re
from typing import Any, Callable, Iterable, List, Optional, Sequence

from ..exceptions import ParseError
from ..models.data_models import AgentType, TaskAnalysis, TaskComplexity, TaskType
from ..utils.logging import get_logger
from ..utils.parsing import extract_json_object

logger = get_logger("analysis_parser")

Parser = Callable[[str], TaskAnalysis]

DEFAULT_ESTIMATED_STEPS = 3

# First match wins, so more specific types come before the broad ones
_TYPE_PATTERNS = [
    (TaskType.BUG, r"\b(bug|bugs|fix|fixes|crash\w*|broken|regression|error|exception)\b"),
    (TaskType.REFACTOR, r"\b(refactor\w*|restructur\w*|clean[\s-]?up|rewrite)\b"),
    (TaskType.OPTIMIZATION, r"\b(optimi[sz]\w*|performance|latency|speed[\s-]?up|faster|slow)\b"),
    (TaskType.DEPLOYMENT, r"\b(deploy\w*|release|ci/cd|docker\w*|kubernetes|k8s|pipeline)\b"),
    (TaskType.DESIGN, r"\b(design|ui|ux|mockup\w*|wireframe\w*|layout)\b"),
    (TaskType.FEATURE, r"\b(feature|implement\w*|add|build|create)\b"),
]

_COMPLEXITY_PATTERNS = [
    (TaskComplexity.COMPLEX, r"\b(complex|complicated|large[\s-]scale|difficult)\b"),
    (TaskComplexity.SIMPLE, r"\b(simple|trivial|easy|small)\b"),
]

_AGENT_PATTERNS = {
    AgentType.ARCHITECT: r"\b(architect\w*|system design|schema)\b",
    AgentType.REVIEWER: r"\b(review\w*|audit|security)\b",
    AgentType.DEBUGGER: r"\b(debug\w*|test\w*|bug|bugs|regression)\b",
    AgentType.DEVOPS: r"\b(devops|deploy\w*|ci/cd|infrastructure|docker\w*|kubernetes)\b",
    AgentType.DESIGNER: r"\b(designer|ui|ux|mockup\w*|wireframe\w*)\b",
}

_STEPS_PATTERN = re.compile(r"(\d+)\s+steps?\b|steps?\D{0,20}?(\d+)")


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _coerce_agents(value: Any) -> List[AgentType]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return [AgentType.CODER]

    agents = []
    for item in value:
        agent = _coerce_enum(AgentType, item, None)
        if agent is not None and agent not in agents:
            agents.append(agent)
    return agents or [AgentType.CODER]


def _coerce_steps(value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        return DEFAULT_ESTIMATED_STEPS
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    # isdigit() also accepts superscripts, which int() rejects
    if isinstance(value, str) and value.strip().isdecimal() and int(value) >= 1:
        return int(value)
    return DEFAULT_ESTIMATED_STEPS


def _coerce_strings(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_structured(text: str) -> TaskAnalysis:
    """Build an analysis from the first JSON object in ``text``.

    Raises:
        ParseError: if the text holds no JSON object.
    """
    data = extract_json_object(text)

    return TaskAnalysis(
        type=_coerce_enum(TaskType, data.get("type"), TaskType.FEATURE),
        complexity=_coerce_enum(TaskComplexity, data.get("complexity"), TaskComplexity.MEDIUM),
        required_agents=_coerce_agents(_first(data, "required_agents", "requiredAgents")),
        estimated_steps=_coerce_steps(_first(data, "estimated_steps", "estimatedSteps")),
        risks=_coerce_strings(data.get("risks")),
        opportunities=_coerce_strings(data.get("opportunities")),
    )


def parse_heuristic(text: str) -> TaskAnalysis:
    """Infer an analysis from keywords in ``text``."""
    lowered = (text or "").lower()

    task_type = TaskType.FEATURE
    for candidate, pattern in _TYPE_PATTERNS:
        if re.search(pattern, lowered):
            task_type = candidate
            break

    complexity = TaskComplexity.MEDIUM
    for candidate, pattern in _COMPLEXITY_PATTERNS:
        if re.search(pattern, lowered):
            complexity = candidate
            break

    agents = [AgentType.CODER]
    for agent, pattern in _AGENT_PATTERNS.items():
        if re.search(pattern, lowered):
            agents.append(agent)

    estimated_steps = DEFAULT_ESTIMATED_STEPS
    match = _STEPS_PATTERN.search(lowered)
    if match:
        estimated_steps = _coerce_steps(match.group(1) or match.group(2))

    return TaskAnalysis(
        type=task_type,
        complexity=complexity,
        required_agents=agents,
        estimated_steps=estimated_steps,
    )


def default_analysis() -> TaskAnalysis:
    """Fixed analysis used when the model could not be consulted."""
    return TaskAnalysis(
        type=TaskType.FEATURE,
        complexity=TaskComplexity.MEDIUM,
        required_agents=[AgentType.ARCHITECT, AgentType.CODER, AgentType.REVIEWER],
        estimated_steps=4,
        risks=["Task analysis failed, using default plan"],
    )


def parse_with_fallback(
    text: str,
    parsers: Optional[Sequence[Parser]] = None,
    default: Callable[[], TaskAnalysis] = default_analysis
) -> TaskAnalysis:
    """Return the result of the first parser that does not raise ParseError.

    Args:
        text: Raw model output
        parsers: Parsers to try in order (structured, then heuristic)
        default: Used when every parser fails

    Returns:
        Task analysis
    """
    chain: Iterable[Parser] = parsers if parsers is not None else (parse_structured, parse_heuristic)

    for parser in chain:
        try:
            return parser(text)
        except ParseError as e:
            logger.debug(f"{getattr(parser, '__name__', parser)} rejected response: {e}")

    logger.warning("No parser accepted the analysis response, using default analysis")
    return default()
