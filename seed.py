from app.database import SessionLocal, engine, Base
from app.models import Category, Comment, Like, Post
from app.text import make_excerpt, slugify

# Create tables
Base.metadata.create_all(bind=engine)

db = SessionLocal()

# Clear existing data
db.query(Like).delete()
db.query(Comment).delete()
db.query(Post).delete()
db.query(Category).delete()

# Sample categories
categories = [
    Category(name="Engineering", slug="engineering", description="Notes from building things", color="#0ea5e9"),
    Category(name="Travel", slug="travel", description="Places and the roads between them", color="#22c55e"),
    Category(name="일상", slug="일상", description="소소한 이야기"),
]
db.add_all(categories)
db.flush()

# Sample posts
samples = [
    ("Hello, World! 안녕", "# Welcome\n\nThis is the first post on the blog.", categories[0], "published"),
    ("Moving to SQLAlchemy 2.0", "The new **select()** style reads better once you get used to it.", categories[0], "published"),
    ("Three days in Jeju", "Wind, basalt and far too many tangerines.", categories[1], "published"),
    ("주말 산책", "한강을 따라 천천히 걸었다.", categories[2], "published"),
    ("Unfinished thoughts", "Still drafting this one.", None, "draft"),
]
posts = [
    Post(
        title=title,
        slug=slugify(title),
        content=content,
        excerpt=make_excerpt(content),
        category_id=category.id if category else None,
        status=status,
        author_id="demo-author",
        view_count=0,
    )
    for title, content, category, status in samples
]
db.add_all(posts)
db.flush()

# Sample interactions
db.add_all([
    Comment(post_id=posts[0].id, user_id="demo-reader", content="Welcome aboard!"),
    Comment(post_id=posts[2].id, user_id="demo-reader", content="Jeju is lovely in the spring."),
    Like(post_id=posts[0].id, user_id="demo-reader"),
    Like(post_id=posts[2].id, user_id="demo-reader"),
])
db.commit()

print("Database seeded successfully!")
print(f"  - {len(categories)} categories")
print(f"  - {len(posts)} posts")
print("  - 2 comments, 2 likes")

db.close()
