"""
Action Templates
타임라인 액션 판단 / 답글·인용 생성 프롬프트

{placeholder} 는 str.format 으로 채운다. 페르소나 identity.yaml의
templates.twitter_action / templates.twitter_message_handler 로 교체 가능.
"""

TWITTER_ACTION_TEMPLATE = """
# INSTRUCTIONS: Determine actions for {agent_name} (@{twitter_username}) based on:
{bio}
{post_directions}

Guidelines:
- ONLY engage with content that DIRECTLY relates to the character's core interests
- Direct mentions are priority IF they are on-topic
- Skip ALL content that is:
  - Off-topic or tangentially related
  - From high-profile accounts unless explicitly relevant
  - Generic/viral content without specific relevance
  - Political/controversial unless central to the character
  - Promotional/marketing unless directly relevant

Actions (each one is independent, several may be true):
like - Perfect topic match AND aligns with the character
retweet - Exceptional content that embodies the character's expertise
quote - Can add substantial domain expertise
reply - Can contribute meaningful, expert-level insight

Tweet:
{current_tweet}

# Default to NO action unless extremely confident of relevance.
Respond ONLY with JSON:
{{"like": true/false, "retweet": true/false, "quote": true/false, "reply": true/false, "analysis": "short reason"}}
"""

TWITTER_MESSAGE_HANDLER_TEMPLATE = """
# About {agent_name} (@{twitter_username}):
{bio}
Topics: {topics}

{post_directions}

Recent conversation:
{formatted_conversation}
{quoted_content}{image_context}

# Task: Write a {action_label} in the voice and style of {agent_name} (@{twitter_username}) to:
{current_post}

Do not add commentary or acknowledge this request, just write the {action_label}.
Brief, concise statements only. The total character count MUST be less than {max_tweet_length}.
No hashtags. Use \\n\\n (double newline) between statements if there are multiple statements.
"""

ACTION_LABELS = {
    'QUOTE': 'quote tweet',
    'REPLY': 'reply',
}
