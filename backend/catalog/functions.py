"""
Function (tool) definitions registered on every agent.

The agent platform invokes these through the configured webhook URL.
Without a webhook URL they are registered anyway and simply cannot run
in real time.
"""
import copy
from typing import Any, Dict, List, Optional

CHECK_IF_OWNER_FUNCTION: Dict[str, Any] = {
    "name": "check_if_owner",
    "description": (
        "Call this function at the very start of every conversation to check if the caller is the owner. "
        "This will help you greet the owner by name immediately."
    ),
    "parameters": {"type": "object", "properties": {}, "required": []},
}

CAPTURE_NOTE_FUNCTION: Dict[str, Any] = {
    "name": "capture_note",
    "description": (
        "Call this function when the caller wants to leave a message or asks you to pass something "
        "along to the person whose number this is."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "note_content": {"type": "string", "description": "The message or note that the caller wants to leave"},
            "caller_phone": {"type": "string", "description": "The caller's phone number"},
        },
        "required": ["note_content", "caller_phone"],
    },
}

MAKE_OUTBOUND_CALL_FUNCTION: Dict[str, Any] = {
    "name": "make_outbound_call",
    "description": (
        "Make an outbound call to a specified phone number and deliver a message on behalf of the owner. "
        "Use this when the owner requests an immediate call that should execute RIGHT NOW during the current call. "
        "Do NOT use this for \"after we hang up\" requests - use schedule_outbound_call instead."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "phone_number": {"type": "string", "description": "The phone number to call in E.164 format (e.g., +14155551234)"},
            "message": {"type": "string", "description": "The message to deliver during the call"},
            "caller_name": {"type": "string", "description": "Optional: The name of the person making the request (the owner)"},
        },
        "required": ["phone_number", "message"],
    },
}

SCHEDULE_OUTBOUND_CALL_FUNCTION: Dict[str, Any] = {
    "name": "schedule_outbound_call",
    "description": (
        "Schedule an outbound call to a specified phone number for a future date/time. Use this when the owner "
        "requests a call at a specific time (e.g., \"in 15 minutes\", \"tomorrow at 8pm\") OR when they say "
        "\"after we hang up\" - in that case, schedule for 1-2 minutes in the future."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "phone_number": {"type": "string", "description": "The phone number to call in E.164 format (e.g., +14155551234)"},
            "message": {"type": "string", "description": "The message to deliver during the call"},
            "scheduled_time": {"type": "string", "description": "ISO 8601 format timestamp for when the call should be made"},
            "caller_name": {"type": "string", "description": "Optional: The name of the person making the request (the owner)"},
        },
        "required": ["phone_number", "message", "scheduled_time"],
    },
}

GET_USER_CONTEXT_FUNCTION: Dict[str, Any] = {
    "name": "get_user_context",
    "description": (
        "Get information about the user. ALWAYS call this before making claims about the user's "
        "background, history, or experience."
    ),
    "parameters": {
        "type": "object",
        "properties": {"topic": {"type": "string", "description": "Specific topic to retrieve (optional)"}},
        "required": [],
    },
}

GET_USER_CONTACTS_FUNCTION: Dict[str, Any] = {
    "name": "get_user_contacts",
    "description": (
        "Search for a contact by name. ALWAYS call this when the user asks to call someone or find a phone number."
    ),
    "parameters": {
        "type": "object",
        "properties": {"contactName": {"type": "string", "description": "Name of the contact"}},
        "required": [],
    },
}

GET_USER_DOCUMENTS_FUNCTION: Dict[str, Any] = {
    "name": "get_user_documents",
    "description": (
        "Get information from user's uploaded documents. ALWAYS call this when user asks about documents, files, "
        "resumes, menus, invoices, or any uploaded content. Returns max 5 document summaries."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "What to search for in documents (e.g., \"resume\", \"menu\")"},
        },
        "required": [],
    },
}

AGENT_FUNCTIONS: List[Dict[str, Any]] = [
    CHECK_IF_OWNER_FUNCTION,
    CAPTURE_NOTE_FUNCTION,
    MAKE_OUTBOUND_CALL_FUNCTION,
    SCHEDULE_OUTBOUND_CALL_FUNCTION,
    GET_USER_CONTEXT_FUNCTION,
    GET_USER_CONTACTS_FUNCTION,
    GET_USER_DOCUMENTS_FUNCTION,
]


def build_function_definitions(webhook_url: Optional[str]) -> List[Dict[str, Any]]:
    """Copy the function definitions, attaching serverUrl when a webhook is configured."""
    functions = []
    for definition in AGENT_FUNCTIONS:
        function = copy.deepcopy(definition)
        if webhook_url:
            function["serverUrl"] = webhook_url
        functions.append(function)
    return functions
