# =============================================================================
# agents/prompts/analysis_prompt.py - Document Analysis Prompt
# =============================================================================
# The fixed instruction template sent to the model for task extraction.
# The document text is embedded verbatim after truncation; the caller is
# responsible for truncating (see DocumentAnalyst.build_prompt).
#
# Usage:
#   prompt = build_analysis_prompt(document_text)
# =============================================================================

from __future__ import annotations

# =============================================================================
# Output Schema (shown to the model)
# =============================================================================

ANALYSIS_JSON_SCHEMA = """{
  "document_type": "discharge_summary|prescription|care_plan|other",
  "patient_info": {
    "name": "extracted name or null",
    "conditions": ["list of medical conditions"]
  },
  "tasks": [
    {
      "title": "Clear, actionable task title",
      "description": "Detailed description of what needs to be done",
      "priority": "low|medium|high|urgent",
      "due_date": "YYYY-MM-DD or null if not specified",
      "category": "medication|appointment|monitoring|lifestyle|other"
    }
  ],
  "key_information": ["Important notes or warnings"],
  "summary": "Brief summary of the document content"
}"""


# =============================================================================
# Instruction Template
# =============================================================================

ANALYSIS_PROMPT_TEMPLATE = """Analyze this medical document text and extract actionable care tasks.

DOCUMENT TEXT:
<document>
{document_text}
</document>

(Note: Text may be truncated if too long)

Please provide a JSON response with the following structure:
{schema}

Focus on extracting specific, actionable tasks that family members can complete. Return ONLY valid JSON."""


def build_analysis_prompt(document_text: str) -> str:
    """
    Embed document text in the analysis instruction template.

    Args:
        document_text: Already-truncated text extracted from the document

    Returns:
        The single user message sent to the model
    """
    return ANALYSIS_PROMPT_TEMPLATE.format(
        document_text=document_text,
        schema=ANALYSIS_JSON_SCHEMA,
    )
