# app/agent/graph.py
from langgraph.graph import START, END, StateGraph

from app.agent.state import RecommendState
from app.agent.nodes import (
    rank_node,
    route_after_rank,
    personalized_prompt_node,
    diagnosis_prompt_node,
    generate_node,
    validate_node,
)

builder = StateGraph(RecommendState)

builder.add_node("rank", rank_node)
builder.add_node("personalized_prompt", personalized_prompt_node)
builder.add_node("diagnosis_prompt", diagnosis_prompt_node)
builder.add_node("generate", generate_node)
builder.add_node("validate", validate_node)

builder.add_edge(START, "rank")

builder.add_conditional_edges("rank", route_after_rank, {
    "personalized": "personalized_prompt",
    "diagnosis": "diagnosis_prompt",
})

builder.add_edge("personalized_prompt", "generate")
builder.add_edge("diagnosis_prompt", "generate")
builder.add_edge("generate", "validate")
builder.add_edge("validate", END)

# requests are independent units of work; nothing to checkpoint
recommend_graph = builder.compile()
