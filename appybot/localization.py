from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TextPack:
    application_title: str
    apply_closed: str
    apply_already_applied: str
    apply_in_progress: str
    apply_not_member: str
    apply_accepted: str
    apply_check_dm: str
    dm_welcome: str
    dm_start: str
    dm_question_title: str
    dm_question_body: str
    dm_question_footer: str
    dm_submitted: str
    dm_cancelled: str
    dm_nothing_to_cancel: str
    review_title: str
    review_applicant: str
    review_answer: str
    review_answer_continued: str
    review_submitted_at: str
    review_pass_button: str
    review_fail_button: str
    review_decided: str
    result_title: str
    result_passed: str
    result_failed: str
    reviewer_passed: str
    reviewer_failed: str
    reviewer_already_decided: str
    reviewer_delivery_failed: str
    liveness: str


ENGLISH_TEXTS = TextPack(
    application_title="<b>Customer Support Application.</b>",
    apply_closed=(
        "Welcome to the application! Thank you for your interest for applying but "
        "unfortunately, we are <b>Not</b> taking applications for customer support right now!\n\n"
        "Applications open every <b>Sunday at 12:00 AM EST</b> and close every "
        "<b>Monday at 11:59 PM EST</b>."
    ),
    apply_already_applied=(
        "You have already applied this week! The applications will reset for you to apply "
        "again on <b>Sunday at 12:00 AM EST</b>. If you believe this is incorrect, please "
        "contact the bot owner so they can reset your application file."
    ),
    apply_in_progress=(
        "You already have an application in progress. Please finish it in our private chat first."
    ),
    apply_not_member=(
        "Applications are only open to members of our community group. "
        "Join the group first, then use /apply again."
    ),
    apply_accepted=(
        "Welcome to the application! Thank you for your interest for applying! "
        "Let's start the application, shall we?\n\n"
        "Before we start, please note that the minimum sentence requirement is <b>2+ sentences</b>."
    ),
    apply_check_dm=(
        "📬 Check your private messages with me to continue. "
        "If nothing arrives, open a chat with me and press Start first."
    ),
    dm_welcome=(
        "Welcome to the application! Thank you for your interest for applying! "
        "Let's start the application, shall we?\n\n"
        "Before we start, please note that the minimum sentence requirement is <b>2+ sentences</b>."
    ),
    dm_start=(
        "👋 Hi! I run the Customer Support applications.\n\n"
        "Use /apply here or in the community group while applications are open."
    ),
    dm_question_title="<b>Question {number}</b>",
    dm_question_body="<b>Q{number}:</b> {question}",
    dm_question_footer="<i>Please answer with at least 2 sentences.</i>",
    dm_submitted=(
        "<b>SUBMITTED 🎉</b>\n\n"
        "Your application has been submitted! Please wait some time for our CS leadership to "
        "review your application and your results will be sent back via <b>THIS</b> DM."
    ),
    dm_cancelled="❌ Your application was cancelled. Nothing was submitted.",
    dm_nothing_to_cancel="You have no application in progress.",
    review_title="<b>New Application Submitted</b>",
    review_applicant="Applicant: <b>{name}</b> (<code>{user_id}</code>)",
    review_answer="<b>Q{number}</b>\n{answer}",
    review_answer_continued="<b>Q{number} (cont.)</b>\n{answer}",
    review_submitted_at="<i>{timestamp}</i>",
    review_pass_button="✅ Pass",
    review_fail_button="❌ Fail",
    review_decided="<b>{decision}</b> by {reviewer}",
    result_title="<b>Application Result</b>",
    result_passed=(
        "🎉 Congratulations! You have <b>passed</b> your Customer Support application! "
        "The role will be added soon. If the role is not added, please open a ticket and "
        "request Staffing Support so the role may be added. Make sure to attach proof."
    ),
    result_failed=(
        "Thank you for applying. Unfortunately, you did <b>not pass</b> this time. "
        "They will open again on Sunday at 12:00 AM EST."
    ),
    reviewer_passed="Applicant passed.",
    reviewer_failed="Applicant failed.",
    reviewer_already_decided="This application has already been decided.",
    reviewer_delivery_failed="Could not message the applicant. Try again later.",
    liveness="Bot is alive!",
)
