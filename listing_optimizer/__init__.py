"""Amazon listing optimizer: fetch a listing, rewrite it with Gemini, keep the history."""
