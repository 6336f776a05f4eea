"""
Static copy for the informational pages.

Home and About carry fixed marketing content; only blog posts, programs,
leadership profiles and testimonials come from the content store.
"""

NAV_ITEMS = [
    {"label": "Home", "path": "/"},
    {"label": "About", "path": "/about"},
    {"label": "Programs", "path": "/programs"},
    {"label": "Blog", "path": "/blog"},
    {"label": "Contact", "path": "/contact"},
]

FACEBOOK_URL = "https://www.facebook.com/profile.php?id=61566465128143&mibextid=ZbWKwL"
WHATSAPP_URL = "https://wa.me/"

HOME_PROJECTS = [
    {"img": "/static/images/project1.jpg", "title": "Youth Empowerment", "alt": "Youth empowerment event"},
    {"img": "/static/images/project2.jpg", "title": "Skill Acquisition Training", "alt": "Skill training session"},
    {"img": "/static/images/project3.jpg", "title": "Entrepreneurship Bootcamp", "alt": "Entrepreneurship bootcamp"},
]

HOME_TESTIMONIALS = [
    {"text": "Tony Poem Foundation changed my life!", "author": "John Doe"},
    {"text": "Amazing programs for youth empowerment.", "author": "Jane Smith"},
    {"text": "I discovered my true potential here.", "author": "Michael Brown"},
]

HOME_BLOGS = [
    {"title": "The Future of African Youth", "date": "March 10, 2024", "slug": "/blog"},
    {"title": "Impact of Skill Training in Africa", "date": "Feb 25, 2024", "slug": "/blog"},
    {"title": "How to Create Opportunities for Youth", "date": "Jan 15, 2024", "slug": "/blog"},
]

IMPACT_STATS = [
    {"value": "10K+", "label": "Youth Impacted"},
    {"value": "50+", "label": "Programs Run"},
    {"value": "15", "label": "Countries Reached"},
]

PARTNERS = [
    {"name": "Partner 1", "logo": "/static/images/parta.png"},
    {"name": "Partner 2", "logo": "/static/images/PARTNER.png"},
]

MISSION = (
    "To empower youths in Africa through skill acquisition, "
    "leadership training, and entrepreneurship support."
)
VISION = (
    "A future where every young African has the tools and knowledge "
    "to succeed in a competitive world."
)

ABOUT_PROGRAMS = [
    {
        "title": "Skill Acquisition",
        "desc": "Hands-on training in various fields to help youths become self-sufficient.",
    },
    {
        "title": "Entrepreneurship",
        "desc": "Support for young entrepreneurs to start and scale their businesses.",
    },
    {
        "title": "Leadership Training",
        "desc": "Equipping youths with skills to drive positive community change.",
    },
]
