"""Pre-authored content used to pad or replace AI-authored text.

Everything the normalizer and enhancer append is looked up here, keyed by
topic or keyword, so their behaviour can be tuned without touching the
parsing logic.  Templates use ``str.format`` placeholders.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

INVITATION_PHRASE = "Let me pray for you. If you are willing, you can pray along with me:"


@dataclass(frozen=True)
class CannedReference:
    citation: str
    text: str
    context: str = ""
    application: str = ""


@dataclass(frozen=True)
class TopicProfile:
    """Prayer wording and supplementary references for one topic label."""

    prayer_context: str
    hidden_needs: str
    references: tuple[CannedReference, ...]


# ---------------------------------------------------------------------------
# Field defaults used by the normalizer when a field cannot be recovered

DEFAULT_LETTER = "Beloved, I have heard the cry of your heart. I love you, and I am with you."
DEFAULT_PRAYER = "Heavenly Father, thank you for your love and grace. Please grant us peace and strength."
DEFAULT_CORE_MESSAGE = "God loves you, and He is always with you."
DEFAULT_REFERENCES: tuple[str, ...] = ("John 3:16",)

RAW_TEXT_PRAYER = "Heavenly Father, thank you for the love and grace you give us through Jesus Christ."
RAW_TEXT_REFERENCES: tuple[str, ...] = ("John 3:16", "Psalm 23:1", "Philippians 4:13")


# ---------------------------------------------------------------------------
# Continuations appended by the enhancer when a field is below its floor

LETTER_CONTINUATION = (
    "I understand deeply the challenges you are facing with {topic}, {nickname}. "
    "Every difficulty can become a place of growth, and every tear you cry is precious to me.\n\n"
    'Remember that I once said, "Come to me, all you who are weary and burdened, and I will give you rest." '
    "(Matthew 11:28) You are not alone; I have been with you all along, and I will not leave you.\n\n"
    "Trust that my plans for you are good. Even if you cannot see the road ahead right now, "
    "I will lead you step by step, the way a shepherd guides the flock through a dark valley.\n\n"
    "May my peace fill your heart, and may my love become your strength."
)

PRAYER_CONTINUATION = (
    "We come before you, Father, asking for help with {prayer_context}.\n\n"
    "Thank you that your love never changes and that your grace is sufficient for us. "
    "{insight}Let us see your hand at work in the middle of this difficulty.\n\n"
    "Lord, even if not every burden has been spoken aloud, you know all things. "
    "You know the challenges that may come with {topic}, including {hidden_needs}. "
    "Please comfort this heart and heal the wounds that are hidden from view.\n\n"
    "Carry every worry and every fear, so that no one has to bear them alone. "
    "Let your peace flow like a river, and fulfil your promises in Jesus.\n\n"
    "We place all of this into your hands, trusting that you will make a way. "
    "Keep guiding and protecting us, so that each day we may know your presence and your love."
)

# Appended in turn, after the continuation, until a raised floor is met
LETTER_EXTRA_PARAGRAPHS: tuple[str, ...] = (
    "Do not be afraid of the waiting. Seeds grow in the dark long before anyone sees them, "
    "and what I am doing in your life is no less real because it is hidden for now.",
    "When the night feels long, remember that morning always comes. I was there at the beginning "
    "of your story, I am with you in the middle of it, and I will be there at its end.",
    "Rest in my love today. You do not have to carry tomorrow before it arrives; "
    "each day has enough of its own, and I will give you what you need for it.",
)

PRAYER_EXTRA_PARAGRAPHS: tuple[str, ...] = (
    "Lord, when the way ahead is unclear, be a lamp to our feet and a light to our path. "
    "Quiet every anxious thought and let trust grow where fear once lived.",
    "We thank you for every mercy already given, seen and unseen. "
    "Teach us to remember your faithfulness and to lean on it again today.",
    "Surround this life with your protection, renew strength for each new morning, "
    "and let hope rise that does not depend on circumstances.",
)

# Letter keyword -> intercession line inserted into the prayer continuation
LETTER_INSIGHT_LINES: tuple[tuple[str, str], ...] = (
    ("peace", "Grant a deep inner peace. "),
    ("wisdom", "Give heavenly wisdom for every decision. "),
    ("strength", "Be the strength that is needed today. "),
    ("hope", "Renew a living hope. "),
    ("grace", "Let your abundant grace be felt. "),
)


# ---------------------------------------------------------------------------
# Topic lookup table

GENERAL_REFERENCES: tuple[CannedReference, ...] = (
    CannedReference("John 3:16", "For God so loved the world that he gave his one and only Son, that whoever believes in him shall not perish but have eternal life."),
    CannedReference("Romans 8:28", "And we know that in all things God works for the good of those who love him, who have been called according to his purpose."),
    CannedReference("Philippians 4:13", "I can do all this through him who gives me strength."),
    CannedReference("Psalm 23:1", "The Lord is my shepherd, I lack nothing."),
    CannedReference("Isaiah 40:31", "But those who hope in the Lord will renew their strength. They will soar on wings like eagles; they will run and not grow weary, they will walk and not be faint."),
    CannedReference("Isaiah 41:10", "So do not fear, for I am with you; do not be dismayed, for I am your God. I will strengthen you and help you; I will uphold you with my righteous right hand."),
    CannedReference("Jeremiah 29:11", "For I know the plans I have for you, declares the Lord, plans to prosper you and not to harm you, plans to give you hope and a future."),
)

TOPIC_PROFILES: dict[str, TopicProfile] = {
    "work": TopicProfile(
        prayer_context="the needs of daily work",
        hidden_needs="pressure at work, strained relationships, uncertainty about direction, and the balance between work and rest",
        references=(
            CannedReference("Ecclesiastes 3:1", "There is a time for everything, and a season for every activity under the heavens."),
            CannedReference("Proverbs 16:3", "Commit to the Lord whatever you do, and he will establish your plans."),
            CannedReference("Colossians 3:23", "Whatever you do, work at it with all your heart, as working for the Lord, not for human masters."),
            CannedReference("Philippians 4:19", "And my God will meet all your needs according to the riches of his glory in Christ Jesus."),
            CannedReference("Ephesians 2:10", "For we are God's handiwork, created in Christ Jesus to do good works, which God prepared in advance for us to do."),
        ),
    ),
    "relationships": TopicProfile(
        prayer_context="the needs of the heart in relationships",
        hidden_needs="wounds within relationships, loneliness, a longing to be loved, and old hurts",
        references=(
            CannedReference("1 Corinthians 13:4-7", "Love is patient, love is kind. It does not envy, it does not boast, it is not proud."),
            CannedReference("1 John 4:18", "There is no fear in love. But perfect love drives out fear."),
            CannedReference("Ephesians 4:32", "Be kind and compassionate to one another, forgiving each other, just as in Christ God forgave you."),
            CannedReference("Proverbs 17:17", "A friend loves at all times, and a brother is born for a time of adversity."),
            CannedReference("Romans 12:10", "Be devoted to one another in love. Honor one another above yourselves."),
        ),
    ),
    "finances": TopicProfile(
        prayer_context="financial needs",
        hidden_needs="financial pressure, anxiety about money, insecurity about the future, and the balance between material and spiritual life",
        references=(
            CannedReference("Matthew 6:26", "Look at the birds of the air; they do not sow or reap or store away in barns, and yet your heavenly Father feeds them. Are you not much more valuable than they?"),
            CannedReference("1 Timothy 6:6", "But godliness with contentment is great gain."),
            CannedReference("Hebrews 13:5", "Keep your lives free from the love of money and be content with what you have, because God has said, Never will I leave you; never will I forsake you."),
            CannedReference("Malachi 3:10", "Test me in this, says the Lord Almighty, and see if I will not throw open the floodgates of heaven and pour out so much blessing that there will not be room enough to store it."),
            CannedReference("Proverbs 3:9-10", "Honor the Lord with your wealth, with the firstfruits of all your crops; then your barns will be filled to overflowing."),
        ),
    ),
    "health": TopicProfile(
        prayer_context="needs of the body and of health",
        hidden_needs="physical pain, fear of illness, weariness of mind, and the worry of loved ones",
        references=(
            CannedReference("Isaiah 53:5", "But he was pierced for our transgressions, he was crushed for our iniquities; the punishment that brought us peace was on him, and by his wounds we are healed."),
            CannedReference("Psalm 103:2-3", "Praise the Lord, my soul, and forget not all his benefits, who forgives all your sins and heals all your diseases."),
            CannedReference("James 5:14-15", "And the prayer offered in faith will make the sick person well; the Lord will raise them up."),
            CannedReference("3 John 1:2", "Dear friend, I pray that you may enjoy good health and that all may go well with you, even as your soul is getting along well."),
            CannedReference("Exodus 15:26", "For I am the Lord, who heals you."),
        ),
    ),
    "family": TopicProfile(
        prayer_context="the needs of the household",
        hidden_needs="conflict at home, gaps between generations, heavy responsibilities, and concern for loved ones",
        references=(
            CannedReference("Joshua 24:15", "But as for me and my household, we will serve the Lord."),
            CannedReference("Ephesians 6:1-3", "Honor your father and mother, which is the first commandment with a promise, so that it may go well with you."),
            CannedReference("Proverbs 22:6", "Start children off on the way they should go, and even when they are old they will not turn from it."),
            CannedReference("Colossians 3:20-21", "Children, obey your parents in everything, for this pleases the Lord. Fathers, do not embitter your children, or they will become discouraged."),
            CannedReference("Psalm 127:3", "Children are a heritage from the Lord, offspring a reward from him."),
        ),
    ),
    "faith": TopicProfile(
        prayer_context="the needs of faith",
        hidden_needs="spiritual dryness, a weakened faith, distance from God, and spiritual battles",
        references=(
            CannedReference("Hebrews 11:1", "Now faith is confidence in what we hope for and assurance about what we do not see."),
            CannedReference("Romans 10:17", "Consequently, faith comes from hearing the message, and the message is heard through the word about Christ."),
            CannedReference("James 1:6", "But when you ask, you must believe and not doubt, because the one who doubts is like a wave of the sea, blown and tossed by the wind."),
            CannedReference("Mark 9:23", "Everything is possible for one who believes."),
            CannedReference("Ephesians 2:8-9", "For it is by grace you have been saved, through faith, and this is not from yourselves, it is the gift of God."),
        ),
    ),
    "other": TopicProfile(
        prayer_context="the many needs of daily life",
        hidden_needs="troubles deep within, burdens that are hard to put into words, and an uncertain future",
        references=GENERAL_REFERENCES[:5],
    ),
}

TOPIC_ALIASES: dict[str, str] = {
    "career": "work",
    "job": "work",
    "love": "relationships",
    "relationship": "relationships",
    "money": "finances",
    "wealth": "finances",
    "finance": "finances",
    "healing": "health",
    "home": "family",
    "belief": "faith",
    "spiritual": "faith",
}

DEFAULT_TOPIC = "faith"


def topic_profile(topic: str) -> TopicProfile:
    """Return the profile for a topic label, falling back to the faith profile."""
    key = topic.strip().lower()
    key = TOPIC_ALIASES.get(key, key)
    return TOPIC_PROFILES.get(key, TOPIC_PROFILES[DEFAULT_TOPIC])


def reference_padding(topic: str) -> tuple[CannedReference, ...]:
    """Canned references in padding order for ``topic``.

    The topic's own references come first, then the general ones, then
    every other topic's, so each topic draws on the whole table.
    """
    ordered = topic_profile(topic).references + GENERAL_REFERENCES
    for profile in TOPIC_PROFILES.values():
        ordered += profile.references
    return ordered


def _unique_citations(references: tuple[CannedReference, ...]) -> set[str]:
    return {" ".join(reference.citation.split()).lower() for reference in references}


# Distinct citations available to pad any reply
REFERENCE_POOL_SIZE = len(_unique_citations(reference_padding(DEFAULT_TOPIC)))


# ---------------------------------------------------------------------------
# Coverage sweep vocabulary

PERSON_KEYWORDS: tuple[str, ...] = (
    "mother", "father", "mom", "dad", "parents", "family", "friend", "coworker",
    "colleague", "boss", "teacher", "child", "children", "kids", "team", "church",
    "pastor", "spouse", "husband", "wife", "partner", "girlfriend", "boyfriend",
    "son", "daughter", "brother", "sister", "grandmother", "grandfather",
)

EVENT_KEYWORDS: tuple[str, ...] = (
    "birthday", "exam", "interview", "surgery", "wedding", "hospital", "business trip",
    "trip", "travel", "meeting", "presentation", "promotion", "job search", "new job",
    "competition", "funeral", "divorce", "diagnosis", "graduation", "deadline",
)

COVERAGE_LIMIT = 3

COVERAGE_SENTENCES: dict[str, dict[str, str]] = {
    "letter": {
        "person": "I also see the needs of your {keyword}; may my peace rest upon them.",
        "event": "Concerning the {keyword}, may you receive wisdom and courage, and see my guidance.",
    },
    "prayer": {
        "person": "Lord, we also lift up the {keyword} on this heart; grant them comfort and strength.",
        "event": "Father, concerning the {keyword}, grant wisdom and protection, that we may know your presence.",
    },
}


# ---------------------------------------------------------------------------
# Cross-contamination cleanup

# Prayer boilerplate that must not appear inside the letter
LETTER_LEAK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"Let me pray for you.*?Amen\.?", re.IGNORECASE | re.DOTALL),
    re.compile(r"Dear Heavenly Father.*?Amen\.?", re.IGNORECASE | re.DOTALL),
    re.compile(r"In Jesus'? (?:holy |precious |victorious )?name,? (?:we |I )?pray.*?Amen\.?", re.IGNORECASE | re.DOTALL),
    re.compile(r"If you are willing, you can pray along.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"Let me pray for you[^\n]*", re.IGNORECASE),
)

# Letter sign-offs that must not appear inside the prayer
PRAYER_LEAK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"(?:With (?:all )?(?:my )?love|Your loving|Love always|Lovingly),?\s*(?:your\s+)?Jesus\.?",
        re.IGNORECASE,
    ),
)

INVITATION_VARIANT = re.compile(r"^let me pray for you\b[^\n:]*:?", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Static reply used when every provider has failed

STATIC_ERROR_MESSAGE = "AI service temporarily unavailable"

STATIC_LETTER = (
    "Dear {nickname},\n\n"
    "Although I cannot give you a detailed answer right now, I want you to know that I love you, "
    "and I see what you are carrying in {topic}.\n\n"
    "Whatever you are going through, remember that you are not alone. I am always with you, "
    "and my love for you does not change.\n\n"
    "In hard times, come to me and lay your burdens down. I will give you strength, and I will give you peace.\n\n"
    "Trust that my plans for you are good. Even if you cannot see them clearly yet, "
    "I will guide you one step at a time.\n\n"
    "Your loving Jesus"
)

STATIC_PRAYER = (
    INVITATION_PHRASE + "\n\n"
    "Heavenly Father,\n\n"
    "We come before you and thank you for Jesus Christ, through whom we can approach you.\n\n"
    "We pray for {nickname}, who is facing challenges with {topic}. Please grant wisdom and strength.\n\n"
    "Lord, even if {nickname} has not spoken every difficulty aloud, you know all things, "
    "including {hidden_needs}. Comfort this heart and heal the hidden wounds.\n\n"
    "Let your peace fill {nickname}'s heart, so that even in difficulty your love and presence are near.\n\n"
    "We place everything into your hands, including the sighs and tears that have no words, "
    "trusting that you have the best plan. Keep guiding and protecting {nickname} every day.\n\n"
    "In Jesus' name we pray, Amen."
)

STATIC_CORE_MESSAGE = "God loves you; He is with you and will never leave you."

STATIC_REFERENCES: tuple[CannedReference, ...] = (
    CannedReference(
        "Matthew 11:28",
        "Come to me, all you who are weary and burdened, and I will give you rest.",
        context="Jesus extends an invitation to the crowds following him.",
        application="When we are exhausted we can come to Jesus and find true rest.",
    ),
    CannedReference(
        "Psalm 23:1",
        "The Lord is my shepherd, I lack nothing.",
        context="A psalm of David expressing trust in God.",
        application="God cares for every need, as a shepherd cares for the flock.",
    ),
    CannedReference(
        "Philippians 4:13",
        "I can do all this through him who gives me strength.",
        context="Paul writes to the church in Philippi from prison.",
        application="Through Christ we can face every challenge in life.",
    ),
    CannedReference(
        "Isaiah 41:10",
        "So do not fear, for I am with you; do not be dismayed, for I am your God.",
        context="God comforts Israel facing exile and return.",
        application="When facing the unknown, God's presence is our greatest comfort.",
    ),
    CannedReference(
        "Romans 8:28",
        "And we know that in all things God works for the good of those who love him.",
        context="Paul explains God's plan of salvation.",
        application="God can use every experience in life to accomplish his good purpose.",
    ),
)
