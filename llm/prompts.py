"""Prompt templates for article analysis and learn-more write-ups."""

ANALYSIS_SCHEMA = """{
  "category": "news|tutorial|research|tool|api|dataset",
  "practicalLevel": "news_only|beginner_friendly|intermediate|advanced|research_only",
  "aiTechnologies": ["technology1", "technology2"],
  "difficulty": "beginner|intermediate|advanced",
  "timeToExperiment": 30,
  "hasCode": true,
  "hasAPI": false,
  "hasDemo": true,
  "hasTutorial": false,
  "requiresPayment": false,
  "requiresSignup": true,
  "learningObjectives": ["What users will learn1", "What users will learn2"],
  "prerequisites": ["Required knowledge1", "Required tool2"],
  "summary": "2-3 sentence summary of the article",
  "keyTakeaways": ["Key point 1", "Key point 2", "Key point 3"],
  "tags": ["tag1", "tag2", "tag3"]
}"""

ANALYSIS_SYSTEM_PROMPT = (
    "You are an AI analysis assistant that extracts structured information from articles. "
    "Respond with valid JSON only. All fields in the response must be present and valid."
)

RETRY_SYSTEM_PROMPT = (
    "You are an AI analysis assistant. Respond with clean JSON only, no markdown formatting "
    "or extra text. All fields in the response must be present and valid."
)

ANALYSIS_PROMPT = """Analyze this AI technology article and extract structured information for a learning platform database. Users want to filter between articles they can just read vs. things they can actually experiment with today.

Article Title: {title}
URL: {url}

Return a JSON object with these EXACT fields (all fields are required):
{schema}

IMPORTANT: All fields must be present and valid. Do not omit any fields."""

RETRY_PROMPT = """Analyze this AI technology article and return ONLY a JSON object with ALL required fields. Do not include any markdown formatting or explanatory text.

Article Title: {title}
URL: {url}

Return a JSON object with these EXACT fields (all fields are required):
{schema}

Required field names: {fields}

IMPORTANT: All fields must be present and valid. Do not omit any fields. Do not wrap the JSON in code fences."""

LEARN_MORE_SYSTEM_PROMPT = "You are a helpful AI learning assistant."

LEARN_MORE_PROMPT = """You are an AI learning assistant. A user is interested in the following news article:

---
{url}
---

Based on this article, please:

1.  **Identify and briefly explain the key AI technologies, concepts, or entities mentioned.** Aim for 2-3 core items. Include links to websites.
2.  **Suggest two to three actionable steps the user could take to learn more about one or more of these key items hands-on.** These should be specific and achievable for someone looking to experiment. Start each step with an action verb (e.g., "Read...", "Try...", "Explore..."). Include links to websites.
3.  **Propose one simple project idea that the user could undertake to practice or explore these concepts further.** The project should be relatively small in scope. Provide detailed steps with links on how the user would go about completing this project. Also, generate the prompt that a user can copy and paste into a chat prompt to get step-by-step help to complete this simple project. Include prompts for {assistants}.

Please format your response clearly with numbered lists for the explanations and actionable steps, and a clear heading for the project idea.

When providing your response,
1. Provide everything up to the prompts for the different tools as markdown format.
2. After your markdown, return a JSON object with the following structure (and nothing else after the markdown):

{prompt_schema}

The markdown and JSON should be clearly separated. Do not include the chat prompts in the markdown section."""

LEARN_MORE_ASSISTANTS = ("Gemini", "ChatGPT", "Mistral", "Claude")


def build_analysis_prompt(title: str, url: str) -> str:
    return ANALYSIS_PROMPT.format(title=title, url=url, schema=ANALYSIS_SCHEMA)


def build_retry_prompt(title: str, url: str, fields) -> str:
    return RETRY_PROMPT.format(title=title, url=url, schema=ANALYSIS_SCHEMA, fields=", ".join(fields))


def build_learn_more_prompt(url: str) -> str:
    prompt_schema = "{\n" + ",\n".join(f'  "{name}": "..."' for name in LEARN_MORE_ASSISTANTS) + "\n}"
    return LEARN_MORE_PROMPT.format(
        url=url,
        assistants=", ".join(LEARN_MORE_ASSISTANTS[:-1]) + " and " + LEARN_MORE_ASSISTANTS[-1],
        prompt_schema=prompt_schema,
    )
