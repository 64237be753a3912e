"""College administration package.

Organized by feature modules (users, students, faculty, courses, attendance,
grades, timetable, analytics) with a thin Flask controller layer over
service/repository layers.
"""
