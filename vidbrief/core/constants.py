"""Application-wide constants."""

# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------
REFRESH_TOKEN_BYTES = 40
VERIFICATION_TOKEN_BYTES = 32

# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
DEFAULT_VIDEO_TITLE = "Video Summary"

# ---------------------------------------------------------------------------
# Summarization
# ---------------------------------------------------------------------------
MIN_TRANSCRIPT_CHARS = 100
MAX_TRANSCRIPT_CHARS = 14_000
GENERATION_TEMPERATURE = 0.5
GENERATION_MAX_TOKENS = 2048

SYSTEM_PROMPT = "You are an expert at summarizing video content and extracting key points."

USER_PROMPT_TEMPLATE = (
    "You are an AI video summarization expert. Create a detailed, informative summary of the "
    "following video transcript.\n\n"
    "VIDEO TITLE: {title}\n\n"
    "TRANSCRIPT:\n{transcript}\n{truncation_note}\n\n"
    "Please provide:\n"
    "1. A concise but comprehensive summary paragraph of the main topics covered (200-300 words)\n"
    "2. 5-8 key bullet points capturing the most important information, insights or takeaways\n\n"
    "Format your response exactly like this:\n\n"
    "SUMMARY:\n[Your comprehensive summary paragraph here]\n\n"
    "KEY POINTS:\n- [Key point 1]\n- [Key point 2]\n- [Key point 3]\n"
    "- [Additional key points as needed]\n\n"
    "Each key point should be a complete thought, 1-2 sentences long."
)
TRUNCATION_NOTE = "... [transcript truncated due to length]"

# Fallback heuristic tuning
FALLBACK_MIN_SENTENCE_CHARS = 20
FALLBACK_MAX_KEY_POINTS = 8
FALLBACK_MAX_PROSE_SENTENCES = 10
DERIVED_MAX_KEY_POINTS = 5

UNEXTRACTED_SUMMARY_TEXT = "Summary could not be extracted from the generated content."
NO_KEY_POINTS_TEXT = "Unable to generate key points for this video."
NO_SUMMARY_TEXT = "Sorry, we couldn't generate a summary for this video at this time."

# ---------------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------------
PLACEHOLDER_TRANSCRIPT_NOTICE = "This is an auto-generated transcript for demo purposes:"
NO_TRANSCRIPT_TEXT = "No transcript is available for this video."
PLACEHOLDER_TRANSCRIPT_STEP_SECONDS = 30

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
