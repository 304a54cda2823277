"""Adapters between framework message types and agentrun's Message.

Available adapters:
    - LangChainAdapter: LangChain messages (HumanMessage, AIMessage, ...) in
      both directions. Requires the ``langchain`` extra.

Usage:
    ```python
    from agentrun_core.adapters.langchain import LangChainAdapter
    from langchain_core.messages import HumanMessage

    adapter = LangChainAdapter()
    handle = chat.run_single_step(adapter.convert([HumanMessage(content="Hello")]))
    ```
"""

from agentrun_core.adapters.protocol import MessageAdapter

__all__ = ["MessageAdapter"]
