"""
Mousetrap moderation pipeline.

- **guard_evaluator.py**: classifies each message as Ignore, Warn or Punish
- **immunity_policy.py**: decides which members are only warned
- **action_executor.py**: runs the side effects of a decision step by step
- **mousetrap_embed.py**: audit log embed and DM texts
"""
