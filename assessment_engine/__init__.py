"""
Assessment scoring and response-validity engine.

Turns raw questionnaire responses into per-dimension scores, detects
response distortion, assembles candidate-facing results, and computes
adverse-impact and compliance records across populations of results.

Usage:
    from assessment_engine.core.content import get_content, load_assessment_definition
    from assessment_engine.core.engine import score_assessment

    definition = load_assessment_definition("cair_plus.yaml")
    tables = get_content().tables_for(definition.assessment_type)
    result = score_assessment(definition, response_set, tables)
"""

__version__ = "0.1.0"
