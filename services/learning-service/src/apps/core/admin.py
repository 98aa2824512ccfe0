from django.contrib import admin

from .models import Course, Module, Lesson, Quiz, Question, QuizAttempt, Enrollment, ModuleProgress


class IncludeDeletedAdmin(admin.ModelAdmin):
    """Admin lists show soft-deleted rows too."""

    def get_queryset(self, request):
        return self.model.objects.include_deleted()


@admin.register(Course)
class CourseAdmin(IncludeDeletedAdmin):
    list_display = ['title', 'created_by', 'price', 'module_price', 'total_students', 'is_deleted']
    list_filter = ['is_deleted']
    search_fields = ['title', 'description']


@admin.register(Module)
class ModuleAdmin(IncludeDeletedAdmin):
    list_display = ['title', 'course', 'order', 'is_accessible', 'is_deleted']
    list_filter = ['is_accessible', 'is_deleted']
    search_fields = ['title']
    ordering = ['course', 'order']


@admin.register(Lesson)
class LessonAdmin(IncludeDeletedAdmin):
    list_display = ['title', 'module', 'order', 'quiz_required', 'requires_quiz_pass', 'is_deleted']
    list_filter = ['quiz_required', 'is_deleted']
    search_fields = ['title']
    ordering = ['module', 'order']


@admin.register(Quiz)
class QuizAdmin(IncludeDeletedAdmin):
    list_display = ['title', 'lesson', 'quiz_time', 'passing_score', 'max_attempts', 'question_pool_size', 'total_marks']
    list_filter = ['is_deleted']
    search_fields = ['title']


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['quiz', 'order', 'question_type', 'marks']
    list_filter = ['question_type']
    search_fields = ['text']
    ordering = ['quiz', 'order']


@admin.register(QuizAttempt)
class QuizAttemptAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'quiz', 'attempt_number', 'status', 'percentage', 'passed', 'submit_time']
    list_filter = ['status', 'passed', 'needs_manual_grading']
    search_fields = ['user_id']
    ordering = ['-start_time']


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'course', 'enrollment_type', 'enrolled_at']
    list_filter = ['enrollment_type']
    search_fields = ['user_id']


@admin.register(ModuleProgress)
class ModuleProgressAdmin(admin.ModelAdmin):
    list_display = ['user_id', 'module', 'progress', 'last_accessed']
    search_fields = ['user_id']
    ordering = ['-last_accessed']
