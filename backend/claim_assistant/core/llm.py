"""
LLM factory: returns the appropriate LangChain chat model based on LITELLM_MODE.

  proxy   → ChatOpenAI pointed at the LiteLLM proxy container (dev default)
  library → ChatLiteLLM using the litellm library in-process (production)

Both return the same LangChain BaseChatModel interface, so the reasoner is
unaware of the underlying routing mechanism.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from claim_assistant.core.config import Settings, get_settings


def get_chat_model(
    settings: Settings | None = None,
    *,
    model: str | None = None,
) -> BaseChatModel:
    """
    Return a configured chat model.

    Args:
        settings: Settings to read from. Defaults to get_settings().
        model:    Override the model name. Defaults to settings.primary_model.
    """
    settings = settings or get_settings()
    model_name = model or settings.primary_model

    if settings.litellm_mode == "library":
        from langchain_community.chat_models import ChatLiteLLM

        return ChatLiteLLM(
            model=model_name,
            temperature=settings.temperature,
        )
    else:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            base_url=settings.litellm_base_url,
            api_key=settings.litellm_master_key,
            model=model_name,
            temperature=settings.temperature,
        )
