"""Preset forms offered by ``POST /create-form``.

Each preset is a heading, a description and an ordered list of question definitions
using the wire (camelCase) keys.
"""

FORM_TEMPLATES = {
    "blank_form": {
        "heading": "Untitled Form",
        "description": "Add a description",
        "questions": [
            {
                "questionText": "",
                "questionDescription": "",
                "questionType": "paragraph",
                "options": [],
                "answerType": "single",
                "required": False,
            },
            {
                "questionText": "",
                "questionDescription": "",
                "questionType": "mcq",
                "options": ["Option 1"],
                "answerType": "single",
                "required": False,
            },
        ],
    },
    "party_invite": {
        "heading": "Party Invitation",
        "description": "Join us for a fun party!",
        "questions": [
            {
                "questionText": "Your Name",
                "questionDescription": "Please enter your name.",
                "questionType": "paragraph",
                "options": [],
                "answerType": "single",
                "required": True,
            },
            {
                "questionText": "Will you attend?",
                "questionDescription": "Let us know if you can make it.",
                "questionType": "mcq",
                "options": ["Yes", "No", "Maybe"],
                "answerType": "single",
                "required": True,
            },
        ],
    },
    "contact_form": {
        "heading": "Contact Us",
        "description": "We'd love to hear from you!",
        "questions": [
            {
                "questionText": "Your Name",
                "questionDescription": "Please enter your name.",
                "questionType": "paragraph",
                "options": [],
                "answerType": "single",
                "required": True,
            },
            {
                "questionText": "Your Email",
                "questionDescription": "Please enter your email address.",
                "questionType": "paragraph",
                "options": [],
                "answerType": "single",
                "required": True,
            },
            {
                "questionText": "Your Message",
                "questionDescription": "What would you like to say?",
                "questionType": "paragraph",
                "options": [],
                "answerType": "multiple",
                "required": True,
            },
        ],
    },
    "feedback_form": {
        "heading": "Feedback Form",
        "description": "We appreciate your feedback!",
        "questions": [
            {
                "questionText": "Rate your experience",
                "questionDescription": "How would you rate your experience?",
                "questionType": "mcq",
                "options": ["1", "2", "3", "4", "5"],
                "answerType": "single",
                "required": True,
            },
            {
                "questionText": "What did you like?",
                "questionDescription": "Please share what you liked.",
                "questionType": "paragraph",
                "options": [],
                "answerType": "single",
                "required": True,
            },
            {
                "questionText": "What can be improved?",
                "questionDescription": "Please share your suggestions.",
                "questionType": "paragraph",
                "options": [],
                "answerType": "single",
                "required": True,
            },
        ],
    },
}


def get_template(form_type: str) -> dict:
    return FORM_TEMPLATES[form_type]
