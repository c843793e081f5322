from typing import Dict, List

from relay.models import AnalysisRequest

DEFAULT_LANGUAGE = "English"


def build_system_instruction(language: str) -> str:
    return (
        "You are a world-class AI diagnostic expert system focused on providing medical analysis "
        "and suggesting relevant In Vitro Diagnostic (IVD) tests.\n"
        "Your response MUST be a single JSON object.\n"
        "- Analyze the data provided (department, symptoms, results) and identify potential primary "
        "and secondary conditions.\n"
        "- Provide a comprehensive 'medical_analysis' (string) in the requested language.\n"
        "- Provide a list of top 3-5 'suggested_ivd_tests' (array of strings) that are most relevant "
        "to confirming the diagnosis.\n"
        f"- Respond ONLY in the requested language: {language}.\n"
        "- The JSON keys MUST be exactly 'medical_analysis' and 'suggested_ivd_tests'.\n"
        "- Do NOT include any introductory text, markdown formatting (like triple backticks or 'json'), "
        "or explanations outside of the JSON block."
    )


def build_user_prompt(request: AnalysisRequest) -> str:
    return (
        "Analyze the following patient data for diagnosis and IVD recommendation:\n"
        f"Department/Additional Info: {request.department or 'Not provided'}\n"
        f"Symptoms/Chief Complaint: {request.symptoms or 'Not provided'}\n"
        f"Clinical History/Test Results: {request.results or 'Not provided'}"
    )


def build_analysis_messages(request: AnalysisRequest) -> List[Dict[str, str]]:
    language = (request.language or "").strip() or DEFAULT_LANGUAGE
    return [
        {"role": "system", "content": build_system_instruction(language)},
        {"role": "user", "content": build_user_prompt(request)},
    ]
