"""E-2 (foreign language instructor) rule tables."""

from visa_engine.rules.common import NATIVE_ENGLISH_COUNTRIES

VERSION = "2.0"

_NATIVE = sorted(NATIVE_ENGLISH_COUNTRIES)

RULE_SET = {
    "code": "E-2",
    "name": "Foreign Language Instructor",
    "category": "WORK",
    "complexity": "MEDIUM",
    "version": VERSION,
    "description": (
        "Foreign language conversation teaching at language institutes, "
        "schools and universities"
    ),
    "eligibility_matrix": {
        "entries": {"*": {"*": {"minimum_degree": "bachelor", "minimum_experience": 0}}},
    },
    "requirements": {
        "allowed_nationalities": _NATIVE,
        "languages": [
            {
                "language": "english",
                "level": "NATIVE",
                "required": True,
                "description": "Native-level command of the language taught",
            },
        ],
    },
    "documents": {
        "common": [
            {"code": "APPLICATION_FORM", "name": "Visa application form"},
            {"code": "PASSPORT", "name": "Passport"},
            {"code": "PHOTO", "name": "Photo"},
            {"code": "FEE", "name": "Application fee"},
        ],
        "by_application_type": {
            "NEW": [
                {"code": "DEGREE_CERT", "name": "Degree certificate", "group": "education", "apostille": True},
                {
                    "code": "CRIMINAL_RECORD",
                    "name": "Criminal record certificate",
                    "group": "background",
                    "apostille": True,
                    "validity_months": 6,
                },
                {"code": "HEALTH_CERT", "name": "Health certificate", "group": "background", "validity_months": 3},
                {"code": "EMPLOYMENT_CONTRACT", "name": "Employment contract", "group": "employment"},
            ],
            "EXTENSION": [
                {"code": "EMPLOYMENT_CERT", "name": "Certificate of employment", "group": "employment"},
                {"code": "TAX_PAYMENT", "name": "Tax payment certificate", "group": "compliance"},
            ],
            "CHANGE": [
                {"code": "CURRENT_STATUS", "name": "Proof of current status", "group": "change_specific"},
            ],
        },
        "by_nationality": {
            "DEFAULT": [
                {"code": "CRIMINAL_RECORD", "name": "Criminal record certificate", "group": "background"},
            ],
        },
    },
    "changeability": {
        "target": "E-2",
        "edges": [
            {
                "from_visa": "D-2",
                "tag": "conditional",
                "condition": "Graduation or completion of the degree program",
                "documents": ["graduation_certificate"],
            },
            {"from_visa": "D-10", "tag": "allowed"},
            {"from_visa": "E-1", "tag": "allowed"},
            {"from_visa": "E-3", "tag": "allowed"},
            {"from_visa": "E-7", "tag": "allowed"},
            {"from_visa": "F-2", "tag": "allowed"},
            {"from_visa": "F-4", "tag": "allowed"},
            {"from_visa": "F-5", "tag": "allowed"},
            {"from_visa": "B-1", "tag": "prohibited"},
            {"from_visa": "B-2", "tag": "prohibited"},
            {"from_visa": "C-3", "tag": "prohibited"},
        ],
    },
    "base_processing_days": {"NEW": 19, "EXTENSION": 9, "CHANGE": 24},
    "processing_adjustments": [
        {
            "condition": {"field": "document_quality", "operator": "eq", "value": "POOR"},
            "days": 7,
            "factor": "Document supplementation and re-review",
        },
    ],
    "immediate_rejection": [
        {
            "code": "CRIMINAL_RECORD",
            "condition": {"field": "criminal_record", "operator": "eq", "value": True},
            "message": "Applicant has a criminal record",
            "solution": "Obtain legal advice before applying",
        },
    ],
    "remediable_issues": [
        {
            "code": "NO_TEACHING_CERT",
            "condition": {"field": "teaching_certification", "operator": "eq", "value": False},
            "message": "No TEFL/TESOL teaching certificate",
            "solution": "Obtain a TEFL, TESOL or CELTA certificate",
            "severity": "LOW",
            "category": "QUALIFICATION",
            "time_to_resolve": "1-3 months",
            "difficulty": "MEDIUM",
        },
        {
            "code": "INSUFFICIENT_TEACHING_EXPERIENCE",
            "condition": {"field": "teaching_experience", "operator": "lt", "value": 1},
            "message": "Less than one year of teaching experience",
            "solution": "Add teaching or tutoring volunteer experience",
            "severity": "MEDIUM",
            "category": "EXPERIENCE",
            "time_to_resolve": "3-6 months",
            "difficulty": "MEDIUM",
        },
    ],
    "probability_bonuses": [
        {
            "condition": {"field": "teaching_experience", "operator": "gte", "value": 3},
            "points": 5,
            "reason": "Established teaching record",
        },
    ],
    "alternatives": [
        {
            "visa": "E-7",
            "title": "Specific Activities",
            "reason": "No nationality restriction for professional roles",
            "condition": {"field": "nationality", "operator": "nin", "value": _NATIVE},
            "advantages": ["No nationality restriction", "Wide range of occupations"],
        },
        {
            "visa": "F-2",
            "title": "Residence",
            "reason": "Long-term stay",
            "condition": {"field": "stay_duration", "operator": "gt", "value": 3},
            "advantages": ["Unrestricted employment", "Stable residence"],
        },
    ],
    "features": {
        "preScreening": True,
        "detailedEvaluation": True,
        "documentValidation": True,
        "realTimeValidation": True,
        "complexityAnalysis": False,
        "activityValidation": False,
        "certificateIssuance": False,
        "legalMatching": False,
    },
}
