# create.py: seed an organization (with default task statuses), a project and an admin user
from getpass import getpass
from workdesk import create_app
from workdesk.extensions import db
from workdesk.models.user import User
from workdesk.models.organization import Organization, Project


def main():
    app = create_app()
    with app.app_context():
        db.create_all()

        org_name = input("Organization name: ").strip()
        project_name = input("First project name: ").strip()
        email = input("Admin email: ").strip().lower()
        name = input("Full name: ").strip()
        password = getpass("Password: ")

        # Check existing
        if User.query.filter_by(email=email).first():
            print("User with that email already exists.")
            return

        org = Organization.with_default_statuses(org_name)
        db.session.add(org)
        db.session.add(Project(organization=org, name=project_name or "General"))

        user = User(name=name, email=email, role="admin")
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        print(f"Organization {org.name!r} and admin user {email} created successfully.")

if __name__ == "__main__":
    main()
