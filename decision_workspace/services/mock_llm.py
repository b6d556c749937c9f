"""Mock text-generation provider.

Deterministic, keyword-routed responses so the workflow can be exercised
without any API key. Always available.
"""

from __future__ import annotations

import json
import math

from .prompts import SCORE_JSON_MARKER

MOCK_MODEL = "mock-v1"

_INTERVIEW_QUESTIONS = """Based on your problem statement, here are some clarifying questions:

1. What specific pain points are users experiencing?
2. How is this problem currently being addressed (if at all)?
3. What data sources are available to measure the current state?
4. Who are the key stakeholders affected by this problem?
5. What would success look like in 6 months?"""

_REWRITE_SUGGESTION = """Here's a more structured problem statement:

**Current Situation**: [Describe current process/pain points with specific metrics]
**Impact**: [Quantify the impact - e.g., "Costing $X annually" or "Taking Y hours per week"]
**Desired Outcome**: [Clear, measurable goal - e.g., "Reduce time by Z%" or "Increase accuracy to W%"]
**Constraints**: [Any technical, budget, or timeline constraints]"""

# Checked in order; first keyword found in the user prompt wins.
_SCORE_HINTS = (
    ("cost", "Based on typical AI projects:\n- Cost savings potential: 2/3 (moderate)\n"
             "- Consider both direct cost reduction and efficiency gains"),
    ("efficiency", "Efficiency improvements often significant with AI:\n- Score: 3/3 (high)\n"
                   "- AI can automate repetitive tasks and accelerate processes"),
    ("quality", "Quality enhancement varies:\n- Score: 2/3 (moderate)\n"
                "- AI can improve consistency but may require human oversight"),
    ("risk", "Risk reduction considerations:\n- Score: 1/3 (low) or 2/3 (moderate)\n"
             "- AI introduces new risks (bias, errors) while reducing others"),
    ("capability", "Capability building potential:\n- Score: 2/3 (moderate)\n"
                   "- Enables new capabilities but requires skill development"),
    ("data", "Data investment required:\n- Score: 2/3 (moderate) to 3/3 (high)\n"
             "- Depends on data availability and quality"),
    ("engineering", "Engineering effort:\n- Score: 3/3 (high) for custom solutions\n"
                    "- Score: 1/3 (low) for off-the-shelf tools"),
    ("change", "Change management:\n- Score: 2/3 (moderate)\n"
               "- User adoption and process changes required"),
)

_GENERAL_SCORES = """Based on your inputs, here are suggested scores:

**Return Scores**:
- Cost: 2/3 (moderate savings potential)
- Efficiency: 3/3 (high improvement likely)
- Quality: 2/3 (moderate enhancement)
- Risk: 1/3 (low reduction)
- Capability: 2/3 (moderate new capabilities)

**Investment Scores**:
- Data: 2/3 (moderate preparation needed)
- Engineering: 3/3 (significant effort required)
- Change: 2/3 (moderate organizational change)"""

_SUGGESTED_SCORES = {
    "return_scores": {
        "cost_savings": 2,
        "revenue_increase": 1,
        "efficiency": 3,
        "customer_satisfaction": 2,
        "quality": 2,
        "risk_reduction": 1,
        "capability": 2,
    },
    "invest_scores": {"data": 2, "engineering": 3, "change": 2},
}

# (keywords, reason, counterargument) per quadrant
_QUADRANT_TEXT = (
    (
        ("quick", "win"),
        "**Why this is a Quick Win**:\n- Low technical complexity\n- High immediate impact\n"
        "- Clear ROI\n- Minimal organizational change required\n\n"
        "**Recommended Approach**: Start with a pilot project using existing tools and data.",
        "**Potential Issues with Quick Wins**:\n- May address symptoms rather than root causes\n"
        "- Could create technical debt\n- Might not scale well\n"
        "- Opportunity cost of not pursuing more strategic initiatives",
    ),
    (
        ("strategic", "bet"),
        "**Why this is a Strategic Bet**:\n- Aligns with long-term business strategy\n"
        "- Creates competitive advantage\n- Requires significant investment\n"
        "- High potential return\n\n"
        "**Recommended Approach**: Develop a phased roadmap with clear milestones and regular reviews.",
        "**Risks with Strategic Bets**:\n- High failure rate for ambitious projects\n"
        "- Long time to value\n- Resource intensive\n"
        "- May become obsolete due to market changes",
    ),
    (
        ("hygiene", "tactical"),
        "**Why this is Hygiene/Tactical**:\n- Necessary maintenance or compliance\n"
        "- Limited strategic value\n- Low risk, low reward\n- Keeps operations running smoothly\n\n"
        "**Recommended Approach**: Implement as part of regular maintenance cycles.",
        "**Limitations of Hygiene Projects**:\n- Does not create competitive advantage\n"
        "- May not justify AI implementation\n- Could be done with simpler solutions\n"
        "- Limited innovation potential",
    ),
    (
        ("experiment", "optional"),
        "**Why this is Experimental/Optional**:\n- High uncertainty\n- Learning opportunity\n"
        "- May lead to future innovations\n- Limited immediate business value\n\n"
        "**Recommended Approach**: Run as a time-boxed experiment with clear learning objectives.",
        "**Challenges with Experiments**:\n- Difficult to justify ROI\n"
        "- May distract from core business\n- Results may not be actionable\n"
        "- Requires specialized skills",
    ),
)

_GENERAL_RECOMMENDATION = """**AI Recommendation**:

Based on the ROI analysis, this initiative appears to be in the Quick Wins quadrant.

**Key Factors**:
1. Moderate to high return potential
2. Relatively low investment required
3. Clear implementation path
4. Alignment with existing capabilities

**Next Steps**:
1. Define success metrics
2. Identify pilot group
3. Establish baseline measurements
4. Plan for scaling if successful"""


def _default_response(user_prompt: str) -> str:
    return f"""I've analyzed your request regarding "{user_prompt[:50]}..."

**Key Insights**:
1. The problem appears to be well-defined with clear objectives
2. There are measurable success criteria
3. Stakeholder alignment seems achievable
4. Technical feasibility is moderate to high

**Recommendations**:
1. Proceed with detailed planning
2. Establish clear metrics and monitoring
3. Consider a phased approach
4. Plan for change management"""


def _match_quadrant(lower_user: str, index: int) -> str | None:
    for keywords, reason, counter in _QUADRANT_TEXT:
        if any(k in lower_user for k in keywords):
            return (reason, counter)[index]
    return None


def generate_mock_text(system_prompt: str, user_prompt: str) -> str:
    """Pick a canned response from keywords in the prompts."""
    lower_system = system_prompt.lower()
    lower_user = user_prompt.lower()

    if SCORE_JSON_MARKER.lower() in lower_system:
        return json.dumps(_SUGGESTED_SCORES)

    if "problem" in lower_system or "clarify" in lower_system:
        if "interview" in lower_user or "question" in lower_user:
            return _INTERVIEW_QUESTIONS
        if "rewrite" in lower_user or "improve" in lower_user:
            return _REWRITE_SUGGESTION
        if "rewrite" in lower_system:
            return _REWRITE_SUGGESTION
        return _INTERVIEW_QUESTIONS

    if "roi" in lower_system or "score" in lower_system:
        for keyword, hint in _SCORE_HINTS:
            if keyword in lower_user:
                return hint
        return _GENERAL_SCORES

    if "recommend" in lower_system or "advice" in lower_system:
        return _match_quadrant(lower_user, 0) or _GENERAL_RECOMMENDATION

    if "counter" in lower_system or "risk" in lower_system:
        counter = _match_quadrant(lower_user, 1)
        if counter:
            return counter

    return _default_response(user_prompt)


def estimate_mock_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)
