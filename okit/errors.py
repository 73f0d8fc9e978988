"""Error formatting utilities for consistent error messages.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors name the field path: 'steps[2].name is required'
- Include actionable hints where helpful
"""


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("registry file not found")
        'Error: registry file not found'
    """
    return f"Error: {message}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("unknown step 'foo'", "run 'okit list' to see available steps")
        "Error: unknown step 'foo'. Hint: run 'okit list' to see available steps"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "format_error",
    "format_suggestion",
]
