# services/learning-service/src/apps/core/api/serializers/quiz_serializers.py
"""
Quiz Serializers

Serializers for quiz authoring and quiz attempt endpoints.
"""

from rest_framework import serializers

from ...models import Question, QuestionType, Quiz, QuizAttempt


class OptionSerializer(serializers.Serializer):
    option = serializers.CharField()
    is_correct = serializers.BooleanField(default=False)


class QuestionInputSerializer(serializers.Serializer):
    """Question payload; multiple choice when options are given."""

    id = serializers.UUIDField(required=False)
    text = serializers.CharField()
    question_type = serializers.ChoiceField(choices=QuestionType.choices, required=False)
    marks = serializers.IntegerField(min_value=1, default=1)
    options = OptionSerializer(many=True, required=False, default=list)


class QuizCreateSerializer(serializers.Serializer):
    """Serializer for attaching a quiz to a lesson."""

    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    quiz_time = serializers.IntegerField(min_value=1)
    passing_score = serializers.FloatField(min_value=0, max_value=100, required=False)
    max_attempts = serializers.IntegerField(min_value=1, required=False)
    question_pool_size = serializers.IntegerField(min_value=0, required=False, default=0)
    questions = QuestionInputSerializer(many=True, allow_empty=False)


class QuizUpdateSerializer(serializers.Serializer):
    """Serializer for editing a quiz."""

    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    quiz_time = serializers.IntegerField(min_value=1, required=False)
    passing_score = serializers.FloatField(min_value=0, max_value=100, required=False)
    max_attempts = serializers.IntegerField(min_value=1, required=False)
    question_pool_size = serializers.IntegerField(min_value=0, required=False)
    questions = QuestionInputSerializer(many=True, required=False)


class QuestionSerializer(serializers.ModelSerializer):
    """Question with its options, correct flags included (staff)."""

    class Meta:
        model = Question
        fields = ['id', 'text', 'question_type', 'marks', 'options', 'order']


class QuizSerializer(serializers.ModelSerializer):
    """Serializer for quiz responses to staff."""

    lesson_id = serializers.UUIDField(read_only=True)
    questions = QuestionSerializer(many=True, read_only=True)

    class Meta:
        model = Quiz
        fields = [
            'id',
            'lesson_id',
            'title',
            'description',
            'quiz_time',
            'passing_score',
            'max_attempts',
            'question_pool_size',
            'total_marks',
            'questions',
            'created_at',
            'updated_at',
        ]


class AnswerSerializer(serializers.Serializer):
    question_id = serializers.UUIDField()
    selected_option = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    text_answer = serializers.CharField(required=False, allow_blank=True)


class AttemptSubmitSerializer(serializers.Serializer):
    """Serializer for submitting an attempt."""

    answers = AnswerSerializer(many=True, allow_empty=True)


class GradeSerializer(serializers.Serializer):
    question_id = serializers.UUIDField()
    marks = serializers.FloatField(min_value=0, required=False, default=0)
    feedback = serializers.CharField(required=False, allow_blank=True)


class AttemptGradeSerializer(serializers.Serializer):
    """Serializer for grading text answers."""

    grades = GradeSerializer(many=True, allow_empty=True)


class QuizResetSerializer(serializers.Serializer):
    """Learner whose attempts are reset."""

    user_id = serializers.UUIDField()


class QuizAttemptSerializer(serializers.ModelSerializer):
    """Serializer for attempts in grading queues."""

    quiz_id = serializers.UUIDField(read_only=True)
    quiz_title = serializers.CharField(source='quiz.title', read_only=True)
    lesson_id = serializers.UUIDField(source='quiz.lesson_id', read_only=True)

    class Meta:
        model = QuizAttempt
        fields = [
            'id',
            'quiz_id',
            'quiz_title',
            'lesson_id',
            'user_id',
            'attempt_number',
            'status',
            'start_time',
            'submit_time',
            'total_marks',
            'score',
            'percentage',
            'passed',
            'needs_manual_grading',
            'answers',
            'graded_by',
            'graded_at',
        ]
