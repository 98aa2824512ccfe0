# services/learning-service/src/apps/core/services/quiz_service.py
"""
Quiz Service

Quiz authoring: question bank validation, total marks and the lesson's quiz
settings.
"""

import logging
from typing import Any, Dict, List, Optional

from django.conf import settings

from ..models import Lesson, Question, QuestionType, Quiz
from .exceptions import InvalidRequestError, NotFoundError
from .unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

QUIZ_FIELDS = ('title', 'description', 'quiz_time', 'passing_score', 'max_attempts', 'question_pool_size')


class QuizService:
    """Service for managing lesson quizzes."""

    @staticmethod
    def _get_lesson(course_id: str, module_id: str, lesson_id: str, lock: bool = False) -> Lesson:
        queryset = Lesson.objects.filter(
            id=lesson_id,
            module_id=module_id,
            module__course_id=course_id,
            module__is_deleted=False,
        )
        if lock:
            queryset = queryset.select_for_update()
        lesson = queryset.first()
        if not lesson:
            raise NotFoundError('lesson', lesson_id)
        return lesson

    @staticmethod
    def get_lesson_quiz(course_id: str, module_id: str, lesson_id: str) -> Quiz:
        """Active quiz of a lesson."""
        lesson = QuizService._get_lesson(course_id, module_id, lesson_id)
        quiz = lesson.get_quiz()
        if not quiz:
            raise NotFoundError('quiz', message="Quiz not found for this lesson")
        return quiz

    @staticmethod
    def _normalize_question(raw: Dict[str, Any], index: int) -> Dict[str, Any]:
        text = (raw.get('text') or '').strip()
        if not text:
            raise InvalidRequestError(f"Question {index + 1} has no text", field='questions')

        options = raw.get('options') or []
        question_type = raw.get('question_type') or (QuestionType.MCQ if options else QuestionType.TEXT)

        marks = raw.get('marks', 1)
        if marks is None or int(marks) < 1:
            raise InvalidRequestError(f"Question {index + 1} must be worth at least 1 mark", field='questions')

        if question_type == QuestionType.MCQ:
            if len(options) < 2:
                raise InvalidRequestError(
                    f"Question {index + 1} needs at least two options", field='questions'
                )
            correct = [o for o in options if o.get('is_correct')]
            if len(correct) != 1:
                raise InvalidRequestError(
                    f"Question {index + 1} must have exactly one correct option", field='questions'
                )
            options = [
                {'option': str(o.get('option')), 'is_correct': bool(o.get('is_correct'))}
                for o in options
            ]
        else:
            options = []

        return {
            'id': raw.get('id'),
            'text': text,
            'question_type': question_type,
            'marks': int(marks),
            'options': options,
            'order': index,
        }

    @staticmethod
    def _validate_settings(quiz_time: int, max_attempts: int, pool_size: int, question_count: int) -> None:
        if quiz_time is None or int(quiz_time) < settings.LEARNING_ENGINE['MIN_QUIZ_TIME_MINUTES']:
            raise InvalidRequestError("Quiz time must be at least 1 minute", field='quiz_time')
        if max_attempts is None or int(max_attempts) < 1:
            raise InvalidRequestError("Maximum attempts must be at least 1", field='max_attempts')
        if pool_size and int(pool_size) > question_count:
            raise InvalidRequestError(
                "Question pool size cannot exceed the number of questions",
                field='question_pool_size',
                details={'question_pool_size': pool_size, 'question_count': question_count}
            )

    @staticmethod
    @unit_of_work
    def create_quiz(
        course_id: str,
        module_id: str,
        lesson_id: str,
        title: str,
        quiz_time: int,
        questions: List[Dict[str, Any]],
        passing_score: float = None,
        max_attempts: int = None,
        question_pool_size: int = 0,
        description: str = '',
    ) -> Quiz:
        """
        Attach a quiz to a lesson.

        Args:
            course_id: Course ID
            module_id: Module ID
            lesson_id: Lesson ID
            title: Quiz title
            quiz_time: Time limit in minutes
            questions: Question payloads (text, options, marks, question_type)
            passing_score: Percent needed to pass
            max_attempts: Attempts allowed per learner
            question_pool_size: Questions drawn per attempt, 0 for all
            description: Optional description

        Returns:
            Created quiz
        """
        lesson = QuizService._get_lesson(course_id, module_id, lesson_id, lock=True)
        if lesson.get_quiz():
            raise InvalidRequestError("Quiz already exists for this lesson", field='lesson_id')

        if not questions:
            raise InvalidRequestError("A quiz needs at least one question", field='questions')

        engine = settings.LEARNING_ENGINE
        passing_score = engine['DEFAULT_PASSING_SCORE'] if passing_score is None else passing_score
        max_attempts = engine['DEFAULT_MAX_ATTEMPTS'] if max_attempts is None else max_attempts

        normalized = [QuizService._normalize_question(q, i) for i, q in enumerate(questions)]
        QuizService._validate_settings(quiz_time, max_attempts, question_pool_size, len(normalized))

        quiz = Quiz.objects.create(
            lesson=lesson,
            title=title,
            description=description,
            quiz_time=quiz_time,
            passing_score=passing_score,
            max_attempts=max_attempts,
            question_pool_size=question_pool_size or 0,
        )
        Question.objects.bulk_create([
            Question(
                quiz=quiz,
                text=q['text'],
                question_type=q['question_type'],
                marks=q['marks'],
                options=q['options'],
                order=q['order'],
            )
            for q in normalized
        ])
        quiz.recalculate_total_marks()

        lesson.apply_quiz_defaults(passing_score)
        lesson.save()

        logger.info(f"Created quiz {quiz.id} on lesson {lesson.id} with {len(normalized)} questions")
        return quiz

    @staticmethod
    @unit_of_work
    def update_quiz(
        course_id: str,
        module_id: str,
        lesson_id: str,
        questions: Optional[List[Dict[str, Any]]] = None,
        **changes
    ) -> Quiz:
        """
        Edit a quiz, allowed at any time.

        Questions carrying an existing `id` are updated in place, new ones
        are created and omitted ones removed. Submitted attempts keep the
        marks and correct answers recorded at submission, so edits never
        regrade them.

        Returns:
            Updated quiz
        """
        quiz = QuizService.get_lesson_quiz(course_id, module_id, lesson_id)

        for field in QUIZ_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(quiz, field, changes[field])

        if questions is not None:
            if not questions:
                raise InvalidRequestError("A quiz needs at least one question", field='questions')
            normalized = [QuizService._normalize_question(q, i) for i, q in enumerate(questions)]
            existing = {str(q.id): q for q in quiz.questions.all()}
            keep = set()
            for data in normalized:
                question = existing.get(str(data['id'])) if data['id'] else None
                if question is None:
                    question = Question(quiz=quiz)
                question.text = data['text']
                question.question_type = data['question_type']
                question.marks = data['marks']
                question.options = data['options']
                question.order = data['order']
                question.save()
                keep.add(str(question.id))
            quiz.questions.exclude(id__in=keep).delete()

        question_count = quiz.questions.count()
        QuizService._validate_settings(
            quiz.quiz_time, quiz.max_attempts, quiz.question_pool_size, question_count
        )
        quiz.recalculate_total_marks(save=False)
        quiz.save()

        if 'passing_score' in changes and changes['passing_score'] is not None:
            Lesson.objects.filter(pk=quiz.lesson_id).update(minimum_passing_score=quiz.passing_score)

        logger.info(f"Updated quiz {quiz.id}")
        return quiz

    @staticmethod
    @unit_of_work
    def delete_quiz(course_id: str, module_id: str, lesson_id: str, deleted_by: str = None) -> Dict[str, Any]:
        """
        Remove a lesson's quiz.

        Quizzes with attempts are soft deleted to keep the attempt history.

        Returns:
            Dict with quiz_id and soft_deleted flag
        """
        quiz = QuizService.get_lesson_quiz(course_id, module_id, lesson_id)
        quiz_id, lesson_id = str(quiz.id), quiz.lesson_id
        soft = quiz.attempts.exists()
        if soft:
            quiz.soft_delete(deleted_by=deleted_by)
        else:
            quiz.delete()

        lesson = Lesson.objects.get(pk=lesson_id)
        lesson.reset_quiz_settings()
        lesson.save()

        logger.info(f"Deleted quiz {quiz_id} (soft={soft})")
        return {'quiz_id': quiz_id, 'soft_deleted': soft}
