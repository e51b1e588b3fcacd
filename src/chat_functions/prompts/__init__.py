from chat_functions.prompts.catalog import InMemoryPromptCatalog, PromptCatalog, template_values
from chat_functions.prompts.template import placeholders, render

__all__ = ["InMemoryPromptCatalog", "PromptCatalog", "placeholders", "render", "template_values"]
