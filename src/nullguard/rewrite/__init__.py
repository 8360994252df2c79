"""
Rewrite Package.

Matching, eligibility, hygiene and synthesis for the IfNotNull replacement.
"""

from nullguard.rewrite.eligibility import assess
from nullguard.rewrite.hygiene import allocate_name
from nullguard.rewrite.matcher import match
from nullguard.rewrite.models import CallSite, Declined, RewriteCandidate, RewritePlan, TargetIdiom
from nullguard.rewrite.synthesizer import synthesize

__all__ = [
  "CallSite",
  "Declined",
  "RewriteCandidate",
  "RewritePlan",
  "TargetIdiom",
  "allocate_name",
  "assess",
  "match",
  "synthesize",
]
