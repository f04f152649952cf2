"""E-1 (professor) rule tables."""

from visa_engine.rules.common import DISCLOSURE_NATIONALITIES

VERSION = "2.0"

# ==================== Institutions ====================

# Eligible institution types and their processing weight. Weights below 0.9
# mark institutions that get an extra review round.
INSTITUTION_WEIGHTS: dict[str, float] = {
    "UNIVERSITY": 1.0,
    "INDUSTRIAL_UNIVERSITY": 0.95,
    "EDUCATION_UNIVERSITY": 0.95,
    "COLLEGE": 0.9,
    "CYBER_UNIVERSITY": 0.85,
    "TECHNICAL_COLLEGE": 0.9,
    "BROADCAST_UNIV": 0.85,
    "CORRESPONDENCE_UNIV": 0.85,
    "BROADCAST_CORRESPONDENCE": 0.85,
    "MILITARY_ACADEMY": 0.95,
    "POLICE_UNIV": 0.95,
    "TAX_UNIV": 0.9,
    "CREDIT_BANK": 0.8,
}

# Ineligible institution types mapped to the visa that fits them instead.
INELIGIBLE_INSTITUTIONS: dict[str, dict[str, str]] = {
    "ACADEMY": {"name": "Private academy (hagwon)", "alternative_visa": "E-2"},
    "RESEARCH_INSTITUTE": {"name": "Research institute", "alternative_visa": "E-3"},
    "CORPORATE_TRAINING": {"name": "Corporate training center", "alternative_visa": "E-7"},
}

STANDARD_INSTITUTION_WEIGHT = 0.9

# ==================== Activity Requirements ====================

ACTIVITY_REQUIREMENTS = {
    "min_weekly_hours": 6,
    "max_online_percentage": 50,
    "min_contract_months": 12,
    "min_publications": 3,
    "min_korean_level": "TOPIK_3",
}

DISQUALIFYING_HEALTH_STATUSES = frozenset({"UNFIT"})

# ==================== Eligibility Matrix ====================

POSITION_MATRIX = {
    "professor": {
        "graduate_school": {"minimum_degree": "bachelor", "minimum_experience": 4},
        "university": {"minimum_degree": "master", "minimum_experience": 10},
        "college": {"minimum_degree": "master", "minimum_experience": 5},
    },
    "associate_professor": {
        "graduate_school": {"minimum_degree": "bachelor", "minimum_experience": 3},
        "university": {"minimum_degree": "master", "minimum_experience": 4},
        "college": {"minimum_degree": "master", "minimum_experience": 4},
    },
    "assistant_professor": {
        "graduate_school": {"minimum_degree": "bachelor", "minimum_experience": 2},
        "university": {"minimum_degree": "master", "minimum_experience": 2},
        "college": {"minimum_degree": "master", "minimum_experience": 3},
    },
    "lecturer": {
        "university": {"minimum_degree": "master", "minimum_experience": 1},
    },
}

# ==================== Document Checklist ====================

_FEDERAL_CRIMINAL_RECORD = {
    "code": "federal_criminal_record",
    "name": "Federal or national criminal record certificate",
    "requirement": "required",
    "group": "background",
    "apostille": True,
    "validity_months": 6,
    "issuer": "Federal or national police authority",
}

DOCUMENTS = {
    "common": [
        {"code": "passport", "name": "Passport", "group": "basic"},
        {"code": "application_fee", "name": "Application fee", "group": "basic"},
    ],
    "by_application_type": {
        "NEW": [
            {"code": "visa_application_form", "name": "Visa issuance application form", "group": "basic"},
            {"code": "passport_photo", "name": "Passport photo", "group": "basic"},
            {
                "code": "diploma",
                "name": "Degree certificate",
                "group": "education",
                "apostille": True,
                "issuer": "Accredited institution",
            },
            {"code": "transcript", "name": "Academic transcript", "requirement": "optional", "group": "education"},
            {"code": "employment_contract", "name": "Employment contract", "group": "employment"},
            {
                "code": "business_registration",
                "name": "Institution business registration",
                "group": "employment",
                "issuer": "Education institution",
            },
            {
                "code": "institution_profile",
                "name": "Institution profile",
                "requirement": "optional",
                "group": "employment",
            },
            {
                "code": "criminal_record",
                "name": "Criminal record certificate",
                "requirement": "conditional",
                "group": "background",
                "apostille": True,
                "validity_months": 6,
                "condition": "Required for disclosure nationalities",
            },
            {
                "code": "health_certificate",
                "name": "Health certificate",
                "group": "background",
                "validity_months": 3,
                "issuer": "Designated hospital",
            },
            {"code": "recommendation_letter", "name": "Recommendation letter", "requirement": "optional", "group": "optional"},
            {"code": "publication_list", "name": "Publication list", "requirement": "optional", "group": "optional"},
            {"code": "teaching_certificate", "name": "Teaching certificate", "requirement": "optional", "group": "optional"},
        ],
        "EXTENSION": [
            {"code": "extension_application_form", "name": "Extension of stay application form", "group": "basic"},
            {"code": "alien_registration_card", "name": "Alien registration card", "group": "basic"},
            {"code": "attendance_certificate", "name": "Teaching attendance certificate", "group": "activity"},
            {"code": "employment_contract", "name": "Renewed employment contract", "group": "activity"},
            {
                "code": "tax_payment_certificate",
                "name": "Tax payment certificate",
                "group": "compliance",
                "validity_months": 3,
                "issuer": "National Tax Service",
            },
            {"code": "residence_certificate", "name": "Proof of residence", "group": "compliance", "validity_months": 3},
            {
                "code": "insurance_certificate",
                "name": "National health insurance certificate",
                "requirement": "optional",
                "group": "compliance",
            },
            {"code": "activity_report", "name": "Activity report", "requirement": "optional", "group": "optional"},
            {"code": "teaching_evaluation", "name": "Teaching evaluation", "requirement": "optional", "group": "optional"},
        ],
        "CHANGE": [
            {"code": "change_application_form", "name": "Change of status application form", "group": "basic"},
            {"code": "alien_registration_card", "name": "Alien registration card", "group": "basic"},
            {"code": "change_reason_statement", "name": "Statement of reasons for change", "group": "change_specific"},
            {"code": "current_status_report", "name": "Current activity report", "group": "change_specific"},
            {
                "code": "release_letter",
                "name": "Release letter from current employer",
                "requirement": "conditional",
                "group": "change_specific",
                "condition": "Current contract still in force",
            },
            {"code": "diploma", "name": "Degree certificate", "group": "new_qualification", "apostille": True},
            {"code": "employment_contract", "name": "New employment contract", "group": "new_qualification"},
            {"code": "business_registration", "name": "New institution business registration", "group": "new_qualification"},
        ],
    },
    "by_nationality": {
        nationality: [_FEDERAL_CRIMINAL_RECORD] for nationality in sorted(DISCLOSURE_NATIONALITIES)
    },
    "by_current_visa": {
        "D-2": [
            {"code": "graduation_certificate", "name": "Graduation certificate", "group": "visa_specific"},
        ],
        "E-2": [
            {
                "code": "teaching_experience_certificate",
                "name": "Teaching experience certificate",
                "group": "visa_specific",
            },
        ],
    },
}

# ==================== Changeability ====================

CHANGEABILITY = {
    "target": "E-1",
    "edges": [
        {
            "from_visa": "D-2",
            "tag": "conditional",
            "condition": "Graduation or completion of the degree program",
            "documents": ["graduation_certificate", "completion_certificate"],
        },
        {"from_visa": "D-10", "tag": "allowed"},
        {
            "from_visa": "E-2",
            "tag": "conditional",
            "condition": "Master's degree or higher plus teaching experience",
            "documents": ["degree_certificate", "teaching_experience_certificate"],
        },
        {"from_visa": "E-3", "tag": "allowed"},
        {"from_visa": "E-7", "tag": "allowed"},
        {"from_visa": "F-2", "tag": "allowed"},
        {"from_visa": "F-4", "tag": "allowed"},
        {"from_visa": "F-5", "tag": "allowed"},
        {"from_visa": "B-1", "tag": "prohibited"},
        {"from_visa": "B-2", "tag": "prohibited"},
        {"from_visa": "C-3", "tag": "prohibited"},
        {"from_visa": "C-4", "tag": "prohibited"},
        {"from_visa": "G-1", "tag": "prohibited"},
        {"from_visa": "H-1", "tag": "prohibited"},
        {"from_visa": "H-2", "tag": "prohibited"},
    ],
}

# ==================== Rule Set ====================

RULE_SET = {
    "code": "E-1",
    "name": "Professor",
    "category": "WORK",
    "complexity": "MEDIUM",
    "version": VERSION,
    "description": (
        "Teaching or research guidance at a junior college or higher "
        "education institution"
    ),
    "eligibility_matrix": {"entries": POSITION_MATRIX},
    "documents": DOCUMENTS,
    "changeability": CHANGEABILITY,
    "base_processing_days": {"NEW": 20, "EXTENSION": 10, "CHANGE": 25},
    "immediate_rejection": [
        {
            "code": "UNACCREDITED_INSTITUTION",
            "condition": {"field": "institution_accredited", "operator": "eq", "value": False},
            "message": "Employing institution is not accredited by the Ministry of Education",
            "solution": "Find a position at an accredited institution",
        },
        {
            "code": "FALSE_DOCUMENTATION",
            "condition": {"field": "false_documentation", "operator": "eq", "value": True},
            "message": "Previously submitted false documentation",
            "solution": "Seek legal counsel before reapplying",
        },
    ],
    "remediable_issues": [
        {
            "code": "INSUFFICIENT_TEACHING_HOURS",
            "condition": {"field": "weekly_hours", "operator": "lt", "value": 6},
            "message": "Weekly teaching hours below the 6 hour minimum",
            "solution": "Amend the contract to at least 6 teaching hours per week",
            "severity": "HIGH",
            "category": "CONTRACT",
            "time_to_resolve": "1-2 weeks",
            "difficulty": "EASY",
        },
        {
            "code": "EXCESSIVE_ONLINE_TEACHING",
            "condition": {"field": "online_percentage", "operator": "gt", "value": 50},
            "message": "Online teaching exceeds 50% of total hours",
            "solution": "Shift courses so at least half are taught in person",
            "severity": "HIGH",
            "category": "CONTRACT",
            "time_to_resolve": "2-3 weeks",
            "difficulty": "MEDIUM",
        },
    ],
    "features": {
        "preScreening": True,
        "detailedEvaluation": True,
        "documentValidation": True,
        "realTimeValidation": True,
        "activityValidation": True,
        "complexityAnalysis": False,
        "certificateIssuance": True,
        "legalMatching": True,
    },
}
