# clipprompt/prompts.py
"""
Instruction sent ahead of the sampled frames.
The model must answer with the prompt text only.
"""

VIDEO_PROMPT_INSTRUCTION = """
Analyze these video frames, which are sequential snapshots from a short video clip. Generate a detailed and descriptive prompt suitable for a text-to-video AI model to recreate a similar video. The prompt should include:
- The main subject(s) and their key features.
- The primary action or movement occurring.
- The setting or environment, including background details.
- The camera angle and movement (e.g., static shot, panning left, close-up).
- The overall style, mood, or aesthetic (e.g., cinematic, hyperrealistic, 8-bit, watercolor).

Produce only the prompt text as your response.
""".strip()
