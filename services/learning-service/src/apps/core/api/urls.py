# services/learning-service/src/apps/core/api/urls.py
"""
Learning Service API URLs

URL routing configuration for REST API endpoints.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_nested import routers

from .views import (
    CourseViewSet,
    ModuleViewSet,
    LessonViewSet,
    QuizAttemptViewSet,
    EnrollmentViewSet,
)

# Main router
router = DefaultRouter()
router.register(r'courses', CourseViewSet, basename='course')
router.register(r'attempts', QuizAttemptViewSet, basename='attempt')
router.register(r'enrollments', EnrollmentViewSet, basename='enrollment')

# Nested routers for courses
courses_router = routers.NestedDefaultRouter(router, r'courses', lookup='course')
courses_router.register(r'modules', ModuleViewSet, basename='course-module')

# Nested routers for modules
modules_router = routers.NestedDefaultRouter(courses_router, r'modules', lookup='module')
modules_router.register(r'lessons', LessonViewSet, basename='module-lesson')

urlpatterns = [
    path('', include(router.urls)),
    path('', include(courses_router.urls)),
    path('', include(modules_router.urls)),
]

# API URL Patterns Summary:
#
# Courses:
#   GET         /api/v1/learning/courses/{id}/
#   GET         /api/v1/learning/courses/{id}/progress/
#
# Modules (nested):
#   POST        /api/v1/learning/courses/{id}/modules/
#   PATCH/DEL   /api/v1/learning/courses/{id}/modules/{module_id}/
#   PUT         /api/v1/learning/courses/{id}/modules/{module_id}/prerequisites/
#   POST        /api/v1/learning/courses/{id}/modules/reorder/
#   GET         /api/v1/learning/courses/{id}/modules/{module_id}/access/
#
# Lessons (nested):
#   GET/POST/PATCH/DEL  .../modules/{module_id}/lessons/{lesson_id}/quiz/
#   POST        .../modules/{module_id}/lessons/{lesson_id}/quiz/start/
#   POST        .../modules/{module_id}/lessons/{lesson_id}/quiz/reset/
#   POST        .../modules/{module_id}/lessons/{lesson_id}/complete/
#   POST        .../modules/{module_id}/lessons/{lesson_id}/time/
#
# Quiz Attempts:
#   GET         /api/v1/learning/attempts/{id}/
#   POST        /api/v1/learning/attempts/{id}/submit/
#   POST        /api/v1/learning/attempts/{id}/grade/
#   GET         /api/v1/learning/attempts/{id}/results/
#   GET         /api/v1/learning/attempts/ungraded/
#
# Enrollments:
#   GET         /api/v1/learning/enrollments/
#   POST        /api/v1/learning/enrollments/grant/
#   POST        /api/v1/learning/enrollments/revoke/
