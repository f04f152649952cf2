"""E-7 (specific activities) rule tables."""

from visa_engine.rules.common import GNI_PER_CAPITA

VERSION = "2.0"

MINIMUM_POINTS = 80
MINIMUM_SALARY = int(GNI_PER_CAPITA * 0.8)

RULE_SET = {
    "code": "E-7",
    "name": "Specific Activities",
    "category": "WORK",
    "complexity": "HIGH",
    "version": VERSION,
    "description": (
        "Activities designated by the Minister of Justice under a contract "
        "with a public or private organization"
    ),
    "eligibility_matrix": {
        "entries": {"*": {"*": {"minimum_degree": "bachelor", "minimum_experience": 1}}},
    },
    "requirements": {
        "languages": [
            {
                "language": "korean",
                "level": "TOPIK_3",
                "required": False,
                "description": "TOPIK level 3 or higher preferred",
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
                {"code": "CAREER_CERT", "name": "Career certificate", "group": "employment", "apostille": True},
                {"code": "EMPLOYMENT_CONTRACT", "name": "Employment contract", "group": "employment"},
                {"code": "COMPANY_DOCS", "name": "Company registration documents", "group": "employment"},
                {"code": "POINT_CALCULATION", "name": "Point system calculation sheet", "group": "basic"},
            ],
            "EXTENSION": [
                {"code": "EMPLOYMENT_CERT", "name": "Certificate of employment", "group": "employment"},
                {"code": "TAX_PAYMENT", "name": "Income certificate", "group": "compliance"},
                {"code": "INSURANCE", "name": "Social insurance enrollment certificate", "group": "compliance"},
            ],
            "CHANGE": [
                {"code": "CURRENT_STATUS", "name": "Proof of current status", "group": "change_specific"},
                {
                    "code": "RECOMMENDATION",
                    "name": "Employment recommendation",
                    "requirement": "optional",
                    "group": "change_specific",
                },
            ],
        },
        "by_nationality": {
            "CN": [
                {"code": "CRIMINAL_RECORD", "name": "Criminal record certificate", "group": "background"},
                {"code": "EDUCATION_VERIFY", "name": "Education verification", "group": "education"},
            ],
            "DEFAULT": [
                {
                    "code": "CRIMINAL_RECORD",
                    "name": "Criminal record certificate",
                    "requirement": "optional",
                    "group": "background",
                },
            ],
        },
        "by_current_visa": {
            "E-9": [
                {"code": "WORK_CONFIRMATION", "name": "Confirmation of employment period", "group": "visa_specific"},
            ],
        },
    },
    "changeability": {
        "target": "E-7",
        "edges": [
            {
                "from_visa": "D-2",
                "tag": "conditional",
                "condition": "Graduation",
                "documents": ["graduation_certificate"],
            },
            {"from_visa": "D-10", "tag": "allowed"},
            {"from_visa": "E-1", "tag": "allowed"},
            {"from_visa": "E-2", "tag": "allowed"},
            {"from_visa": "E-3", "tag": "allowed"},
            {
                "from_visa": "E-9",
                "tag": "conditional",
                "condition": "At least 4 years and 10 months of employment",
                "documents": ["work_confirmation"],
            },
            {"from_visa": "F-1", "tag": "allowed"},
            {"from_visa": "F-2", "tag": "allowed"},
            {"from_visa": "B-1", "tag": "prohibited"},
            {"from_visa": "B-2", "tag": "prohibited"},
            {"from_visa": "C-3", "tag": "prohibited"},
        ],
    },
    "base_processing_days": {"NEW": 22, "EXTENSION": 12, "CHANGE": 27},
    "processing_adjustments": [
        {
            "condition": {"field": "point_score", "operator": "gte", "value": 100},
            "days": -3,
            "factor": "High point score speeds up review",
        },
        {
            "condition": {"field": "job_category", "operator": "eq", "value": "SPECIAL_TALENT"},
            "days": -5,
            "factor": "Special talent track",
        },
        {
            "condition": {"field": "document_quality", "operator": "eq", "value": "POOR"},
            "days": 10,
            "factor": "Document supplementation and re-review",
        },
    ],
    "immediate_rejection": [
        {
            "code": "INSUFFICIENT_POINTS",
            "condition": {"field": "point_score", "operator": "lt", "value": MINIMUM_POINTS},
            "message": f"Point score below the {MINIMUM_POINTS} point minimum",
            "solution": "Raise the missing point categories (education, experience, Korean)",
        },
        {
            "code": "LOW_SALARY",
            "condition": {"field": "salary", "operator": "lt", "value": MINIMUM_SALARY},
            "message": "Salary below 80% of gross national income per capita",
            "solution": "Negotiate the salary or consider another visa type",
        },
    ],
    "remediable_issues": [
        {
            "code": "NO_KOREAN_CERT",
            "condition": {"field": "korean_level", "operator": "missing"},
            "message": "No proof of Korean proficiency",
            "solution": "Sit the TOPIK exam (level 3 or higher)",
            "severity": "MEDIUM",
            "category": "LANGUAGE",
            "time_to_resolve": "2-3 months",
            "difficulty": "MEDIUM",
        },
        {
            "code": "WEAK_COMPANY",
            "condition": {"field": "company_revenue", "operator": "lt", "value": 100_000_000},
            "message": "Employer revenue below the stability threshold",
            "solution": "Consider moving to a more established employer",
            "severity": "HIGH",
            "category": "EMPLOYER",
            "time_to_resolve": "1-3 months",
            "difficulty": "HARD",
        },
    ],
    "risk_factors": [
        {
            "code": "JOB_INSTABILITY",
            "condition": {"field": "job_change_count", "operator": "gte", "value": 3},
            "description": "Frequent job changes",
            "mitigation": "Provide a long-term contract or an explanation of changes",
        },
    ],
    "probability_bonuses": [
        {
            "condition": {"field": "experience_years", "operator": "gt", "value": 10},
            "points": 10,
            "reason": "Extensive professional experience",
        },
    ],
    "alternatives": [
        {
            "visa": "D-10",
            "title": "Job Seeking",
            "reason": "Time to raise the point score",
            "condition": {
                "and": [
                    {"field": "point_score", "operator": "gte", "value": 60},
                    {"field": "point_score", "operator": "lt", "value": MINIMUM_POINTS},
                ]
            },
            "advantages": ["Job search activities allowed", "Preparation time"],
        },
        {
            "visa": "E-9",
            "title": "Non-professional Employment",
            "reason": "Manufacturing or construction roles",
            "condition": {"field": "industry", "operator": "in", "value": ["manufacturing", "construction"]},
            "advantages": ["Employment permit system", "Stable employment"],
        },
    ],
    "features": {
        "preScreening": True,
        "detailedEvaluation": True,
        "documentValidation": True,
        "realTimeValidation": True,
        "complexityAnalysis": True,
        "activityValidation": False,
        "certificateIssuance": False,
        "legalMatching": True,
    },
}
