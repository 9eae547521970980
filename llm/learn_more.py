import logging

from config import config
from database.store import ArticleStore
from errors import ArticleNotFoundError
from llm.client import CompletionClient
from llm.json_repair import split_markdown_and_json
from llm.prompts import LEARN_MORE_SYSTEM_PROMPT, build_learn_more_prompt

logger = logging.getLogger(__name__)


class LearnMoreGenerator:
    """Hands-on follow-up material for one article, cached on the article row."""

    def __init__(self, store: ArticleStore, client: CompletionClient, model: str = None, max_tokens: int = 4000):
        self.store = store
        self.client = client
        self.model = model or config.ollama.learn_more_model
        self.max_tokens = max_tokens

    def generate(self, article_id: int) -> dict:
        """
        Return learn-more content for an article

        Returns:
            dict with keys:
            - markdown: explanations, hands-on steps and a project idea
            - prompts: assistant name -> ready-to-paste chat prompt, or None
              when the model did not return usable JSON
            - cached: True when served from the article row
        """
        article = self.store.get_article(article_id)
        if article is None:
            raise ArticleNotFoundError(f"Article {article_id} not found")

        if article.ai_learn_more_markdown and article.ai_learn_more_prompts:
            logger.debug(f"Returning cached learn-more content for article {article_id}")
            return {
                'markdown': article.ai_learn_more_markdown,
                'prompts': article.ai_learn_more_prompts,
                'cached': True,
            }

        content = self.client.complete(
            self.model,
            LEARN_MORE_SYSTEM_PROMPT,
            build_learn_more_prompt(article.url),
            temperature=0.7,
            max_tokens=self.max_tokens,
        )
        markdown, prompts = split_markdown_and_json(content)
        if prompts is None:
            logger.warning(f"No prompt JSON in learn-more response for article {article_id}")

        self.store.save_learn_more(article_id, markdown, prompts)
        return {'markdown': markdown, 'prompts': prompts, 'cached': False}
