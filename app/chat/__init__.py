"""
Chat app for project conversations.

This app handles:
- The conversation between a project's client and freelancer
- Message sending and history
- Filtering of off-platform contact details

Related apps:
    - marketplace: Project owning the conversation
    - payments: Funding an escrow unlocks the conversation

Usage:
    from chat.services import MessageService

    message = MessageService.send_message(
        conversation_id=conversation.id,
        sender_id=user.id,
        content="Hello!",
    )
"""
