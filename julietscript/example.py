"""
Annotated reference script printed by `julietscript-lint example`.

Exercises every construct the linter understands and lints cleanly.
"""

EXAMPLE_SCRIPT = '''# JulietScript reference example
#
# Statements run top to bottom. A name may only be referenced after the
# statement that declares it.

# juliet: runtime defaults for the whole script.
#   engine  default generation backend (identifier or quoted string)
juliet {
  engine = codex;
}

# policy: reusable instruction text, attached to artifacts through
# `with { preflight = ...; failureTriage = ...; }`.
policy PreflightChecklist = """
Before sprinting:
- restate scope and acceptance criteria
- list risky files and intended safeguards
- confirm the validation plan before changing code
""";

# Plain quoted strings work too.
policy FailureTriage = "On failure: capture root cause, try one safe recovery, then escalate with evidence.";

# rubric: how candidates are scored.
#   criterion "<label>" points N [means "<definition>"];
#   tiebreakers [...];   ordered labels used when totals tie; each label
#                        must name a criterion declared above it
rubric ShipRubric {
  criterion "Correctness" points 5 means "Behavior matches the requirements and tests pass.";
  criterion "Safety" points 3 means "Risky changes include rollback guidance and guarded rollout.";
  criterion "Clarity" points 2 means "Patch rationale and follow-up tasks are explicit.";
  tiebreakers ["Correctness", "Safety"];
}

# cadence: the search strategy.
#   engine       per-cadence engine override
#   variants     candidates spawned per branch each sprint
#   sprints      number of rounds
#   compare using <rubric>   scoring contract for ranking
#   keep best N  survivors carried into the next sprint
cadence ShipLoop {
  engine = codex;
  variants = 3;
  sprints = 2;
  compare using ShipRubric;
  keep best 2;
}

# create ... from julietArtifactSourceFiles: seed an artifact from
# existing documents.
create SourceBrief from julietArtifactSourceFiles [
  "../docs/product-brief.md",
  "../docs/constraints.md"
];

# create ... from juliet: generate an artifact from a prompt.
#   using [...]  upstream artifacts included as context
#   with {...}   preflight, failureTriage, cadence, rubric attachments
create IterationPlan from juliet """
Draft an implementation plan with:
- milestones
- risks
- test strategy
"""
using [SourceBrief]
with {
  preflight = PreflightChecklist;
  failureTriage = FailureTriage;
  cadence = ShipLoop;
  rubric = ShipRubric;
};

create PatchSet from juliet "Produce a patch series implementing the approved plan."
using [SourceBrief, IterationPlan]
with {
  preflight = PreflightChecklist;
  failureTriage = FailureTriage;
  cadence = ShipLoop;
  rubric = ShipRubric;
};

# extend: append guidance to a declared artifact. Only `.rubric` is
# supported.
extend PatchSet.rubric with """
Add an explicit criterion for migration safety and backward compatibility.
""";

# halt: stop here. `halt;` stops silently; a string records the reason.
halt "Stop after the first accepted PatchSet.";
'''
