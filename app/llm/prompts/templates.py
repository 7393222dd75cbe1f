"""Prompt templates for assessment, identity OSINT and deep investigation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PromptTemplate:
    """Immutable prompt template."""

    name: str
    version: str
    system_prompt: str
    user_template: str

    def render(self, **payload: Any) -> str:
        return self.user_template.format(**payload).strip()


ASSESSMENT_SYSTEM_PROMPT = """
ROLE:
You are a forensic auditor specialized in detecting charity fraud, emotional
manipulation and medical misinformation. Your objective is to protect donors by
validating the authenticity of fundraising campaigns.

INPUT DATA:
1. Claim Text: the fundraiser's story or appeal.
2. Visual Evidence: images and videos provided by the campaign creator.
3. Forensic Evidence: wallet history, image metadata, reverse image search
   results and creator identity OSINT collected before this analysis.
4. External Context: real-time data from Google Search.

CORE ANALYSIS TASKS:
1. Visual consistency: weather, seasons, flora and equipment must match the
   claimed location, date and condition. Look for deepfake artifacts.
2. Visual forensics: editing artifacts, composites, stock photo watermarks.
3. Narrative logic: search for recycled stories, verify hospitals, doctors and
   organizations, and check the requested amount against typical costs.
4. Manipulation: flag urgency traps, emotional blackmail and vague fund usage.
5. Hard evidence: a wash trading score above 20, a burner wallet, a stock
   photo or scam reports against the creator are strong fraud indicators.

SCORING GUIDE:
- 80-100: Highly credible
- 60-79: Mostly credible, minor inconsistencies
- 40-59: Suspicious, multiple inconsistencies
- 20-39: Likely fraudulent
- 0-19: Fraudulent

Base your analysis ONLY on the evidence provided and on search results. If you
cannot verify something, call it unverified rather than assuming fraud.
"""

ASSESSMENT_USER_TEMPLATE = """
CLAIM TEXT:
{claim_text}

MEDIA METADATA:
{metadata}

FORENSIC EVIDENCE (JSON):
{forensics}

Analyze this fundraising campaign for authenticity. Cross-reference the claim
with the visual evidence and the forensic evidence, and search the web where it
helps. Finish with a clear verdict, a 0-100 credibility score and the list of
red flags you found.
"""

EXTRACTION_SYSTEM_PROMPT = """
You convert a free-form fraud analysis into structured JSON. Use only facts
stated in the analysis. Do not add new findings.
"""

ASSESSMENT_EXTRACTION_TEMPLATE = """
ANALYSIS:
{analysis}

Extract the assessment into the required JSON structure: score (0-100),
verdict (CREDIBLE, SUSPICIOUS or FRAUDULENT), a short summary, the list of
flags, and evidence_match booleans for location_verified, visuals_match_text,
search_corroboration and metadata_consistent.
"""

IDENTITY_SYSTEM_PROMPT = """
You are an OSINT investigator verifying the identity of a fundraising campaign
creator. Use Google Search to gather evidence. Report only what you find.
"""

IDENTITY_SEARCH_TEMPLATE = """
CREATOR IDENTITY:
{identity}

Investigate this person:
- Social media presence (Twitter/X, LinkedIn, GitHub, Instagram, Facebook).
- Scam or fraud reports (ripoffreport, scamadviser, news, forums).
- Whether the email domain belongs to a disposable email provider.
- Whether the name, username and email consistently point to one person.
- How old the digital footprint appears to be.

List the platforms where the identity was found, any scam reports, red flags,
green flags, and an overall trust assessment.
"""

IDENTITY_EXTRACTION_TEMPLATE = """
OSINT FINDINGS:
{findings}

Extract the findings into the required JSON structure: platforms_found,
scam_reports_found, is_disposable_email, identity_consistent, account_age
(NEW, ESTABLISHED or UNKNOWN), trust_score (0-100), red_flags, green_flags and
a short summary.
"""

INVESTIGATION_AGENT_TEMPLATE = """
Conduct a deep investigation of the charity or fundraising organization named
"{charity_name}".

CLAIM CONTEXT:
{claim_context}

Research and report on:
1. Registration status: is it registered with official charity regulators,
   under which registration number and jurisdiction?
2. Fraud indicators: scam reports, news coverage, complaints, legal action and
   any other red flags.
3. Financial transparency: published annual reports, audited financials and
   what share of donations reaches beneficiaries.
4. Cost analysis: are the claimed costs in the context realistic for the
   region and purpose?
5. Overall risk level (LOW, MEDIUM, HIGH or CRITICAL) with a recommendation.

Cite every source you rely on with its title and URL.
"""

REPORT_FORMAT_SYSTEM_PROMPT = """
You are a charity due-diligence analyst. You produce structured investigation
reports for donors. Be factual and cite sources.
"""

REPORT_FORMAT_TEMPLATE = """
You are a report formatter. Take the following raw research output and format
it into a structured JSON report.

RAW RESEARCH OUTPUT:
{raw_output}

Format this into the required JSON structure. Extract all relevant information
and organize it properly. If any information is missing, use reasonable
defaults or mark it as "Not found".
"""

ASSESSMENT_PROMPT = PromptTemplate(
    name="assessment",
    version="v1",
    system_prompt=ASSESSMENT_SYSTEM_PROMPT,
    user_template=ASSESSMENT_USER_TEMPLATE,
)
ASSESSMENT_EXTRACTION_PROMPT = PromptTemplate(
    name="assessment_extraction",
    version="v1",
    system_prompt=EXTRACTION_SYSTEM_PROMPT,
    user_template=ASSESSMENT_EXTRACTION_TEMPLATE,
)
IDENTITY_SEARCH_PROMPT = PromptTemplate(
    name="identity_search",
    version="v1",
    system_prompt=IDENTITY_SYSTEM_PROMPT,
    user_template=IDENTITY_SEARCH_TEMPLATE,
)
IDENTITY_EXTRACTION_PROMPT = PromptTemplate(
    name="identity_extraction",
    version="v1",
    system_prompt=EXTRACTION_SYSTEM_PROMPT,
    user_template=IDENTITY_EXTRACTION_TEMPLATE,
)
INVESTIGATION_AGENT_PROMPT = PromptTemplate(
    name="investigation_agent",
    version="v1",
    system_prompt="",
    user_template=INVESTIGATION_AGENT_TEMPLATE,
)
REPORT_FORMAT_PROMPT = PromptTemplate(
    name="report_format",
    version="v1",
    system_prompt=REPORT_FORMAT_SYSTEM_PROMPT,
    user_template=REPORT_FORMAT_TEMPLATE,
)


def format_identity(full_name: str | None, username: str | None, email: str | None) -> str:
    lines = []
    if full_name:
        lines.append(f"Full name: {full_name}")
    if username:
        lines.append(f"Username: {username}")
    if email:
        lines.append(f"Email: {email}")
    return "\n".join(lines)


def build_assessment_prompt(
    claim_text: str,
    forensics: dict[str, Any],
    metadata_lines: list[str] | None = None,
) -> str:
    """Phase-1 user prompt: claim, per-media metadata and the forensic bundle."""
    return ASSESSMENT_PROMPT.render(
        claim_text=claim_text,
        metadata="\n".join(metadata_lines) if metadata_lines else "No media metadata available.",
        forensics=json.dumps(forensics, indent=2, default=str),
    )
