"""
AI tool utilities for web search results.
"""


def format_search_results(query, response, snippet_length=300):
    """
    Format a Tavily search response as plain text for a prompt.

    Args:
        query: The query that was searched
        response: Tavily response dict with optional 'answer' and 'results'
        snippet_length: Characters of page content kept per result

    Returns:
        Formatted string ready to embed in a prompt
    """
    results = response.get("results", [])
    if not results:
        return f"Search Query: {query}\n\nNo search results were found."

    formatted = f"Search Query: {query}\n\n"
    if response.get("answer"):
        formatted += f"Summary Answer: {response['answer']}\n\n"
    formatted += "Search Results:\n"
    for i, r in enumerate(results, 1):
        content = r.get("content", "")
        if len(content) > snippet_length:
            content = content[:snippet_length] + "..."
        formatted += f"{i}. {r.get('title', '')}\n   {content}\n   Source: {r.get('url', '')}\n\n"
    return formatted.rstrip()
