"""
rag_pipeline — Retrieval-augmented chat pipeline for the FarmFlight assistant.

Components:
  embedder        — text → vector (sentence-transformers gte-small)
  chroma_client   — chromadb connection + forums collection
  retriever       — single best forum match above the similarity threshold
  attachments     — drone video fetch + base64 inline parts
  prompt_builder  — persona / farm context / forum block / query assembly
  llm_engine      — Gemini generation client
  chat_pipeline   — per-query state machine tying the above together
  forum_index     — loads the forum corpus into the vector store
"""
