# services/learning-service/src/apps/core/services/quiz_attempt_service.py
"""
Quiz Attempt Service

Lifecycle of a quiz attempt: in_progress -> submitted -> graded, or
in_progress -> graded directly when every answered question is multiple
choice. Expired attempts are closed lazily by the next start.
"""

import logging
import random
from typing import Any, Dict, List, Optional

from django.utils import timezone

from ..models import AttemptStatus, QuestionType, Quiz, QuizAttempt
from ..events.publishers import (
    publish_quiz_attempt_graded,
    publish_quiz_attempt_started,
    publish_quiz_attempt_submitted,
)
from .access_service import AccessService, Actor
from .exceptions import (
    AccessDeniedError,
    AccessReason,
    InvalidRequestError,
    NotFoundError,
    StateConflictError,
    TimeLimitExceededError,
)
from .progress_service import ProgressService
from .quiz_service import QuizService
from .unit_of_work import after_commit, unit_of_work

logger = logging.getLogger(__name__)

MODULE_DENIAL_REASONS = (
    AccessReason.NOT_ENROLLED,
    AccessReason.MODULE_NOT_PURCHASED,
    AccessReason.PREREQUISITES_NOT_MET,
)


class QuizAttemptService:
    """Service for quiz attempts."""

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    @staticmethod
    def _get_attempt(attempt_id: str, lock: bool = False, user_id: str = None) -> QuizAttempt:
        queryset = QuizAttempt.objects.filter(id=attempt_id)
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id)
        if lock:
            queryset = queryset.select_for_update()
        attempt = queryset.first()
        if not attempt:
            raise NotFoundError('attempt', attempt_id, message="Quiz attempt not found")
        return attempt

    @staticmethod
    def _check_reader(actor: Actor, attempt: QuizAttempt) -> None:
        if actor.is_staff or str(attempt.user_id) == str(actor.user_id):
            return
        raise AccessDeniedError(
            AccessReason.NOT_ATTEMPT_OWNER,
            message="You can only view your own quiz attempts"
        )

    @staticmethod
    def _record_pass(attempt: QuizAttempt, quiz: Quiz) -> bool:
        """
        Write a passing result into the learner's progress.

        Returns:
            True if the lesson was marked complete
        """
        lesson = quiz.lesson
        module = lesson.module
        if lesson.is_deleted or module.is_deleted:
            logger.warning(f"Attempt {attempt.id} passed on removed lesson {lesson.id}; progress unchanged")
            return False

        complete_lesson = lesson.quiz_required or lesson.requires_quiz_pass
        ProgressService.record_quiz_pass(
            user_id=str(attempt.user_id),
            course_id=str(module.course_id),
            module_id=str(module.id),
            lesson_id=str(lesson.id),
            quiz_id=str(quiz.id),
            complete_lesson=complete_lesson,
        )
        return complete_lesson

    # =========================================================================
    # START
    # =========================================================================

    @staticmethod
    @unit_of_work
    def start_attempt(
        actor: Actor,
        course_id: str,
        module_id: str,
        lesson_id: str,
        rng: Optional[random.Random] = None,
    ) -> Dict[str, Any]:
        """
        Start a new attempt at a lesson's quiz.

        Live attempts past their time limit are closed with zero score
        first. The checks for a live attempt and for the attempt limit run
        on locked rows in the same transaction that creates the attempt.

        Args:
            actor: Learner starting the quiz
            course_id: Course ID
            module_id: Module ID
            lesson_id: Lesson ID
            rng: Random source for question pool sampling

        Returns:
            Attempt id, number, questions without answers, their total marks,
            the time limit and the start time

        Raises:
            AccessDeniedError: The learner may not attempt the quiz
            StateConflictError: Ongoing attempt or attempt limit reached
        """
        AccessService.can_attempt_quiz(actor, course_id, module_id, lesson_id).raise_if_denied()
        quiz = QuizService.get_lesson_quiz(course_id, module_id, lesson_id)

        now = timezone.now()
        attempts = list(
            QuizAttempt.objects.select_for_update()
            .filter(quiz=quiz, user_id=actor.user_id)
            .order_by('attempt_number')
        )

        for attempt in attempts:
            if not attempt.is_live:
                continue
            attempt.quiz = quiz
            if attempt.is_expired(now):
                attempt.expire()
                logger.info(f"Expired attempt {attempt.id} of user {actor.user_id} on quiz {quiz.id}")
            else:
                raise StateConflictError(
                    "You have an ongoing quiz attempt",
                    code="ONGOING_ATTEMPT",
                    details={'attempt_id': str(attempt.id)}
                )

        completed = sum(1 for a in attempts if a.is_completed)
        if not actor.is_staff and completed >= quiz.max_attempts:
            raise StateConflictError(
                f"Maximum attempts ({quiz.max_attempts}) reached",
                code="MAX_ATTEMPTS_REACHED",
                details={'max_attempts': quiz.max_attempts, 'completed_attempts': completed}
            )

        questions = quiz.select_questions(rng)
        if not questions:
            raise InvalidRequestError("Quiz has no questions")

        attempt = QuizAttempt.objects.create(
            quiz=quiz,
            user_id=actor.user_id,
            attempt_number=max((a.attempt_number for a in attempts), default=0) + 1,
            question_set=[str(q.id) for q in questions],
            total_marks=sum(q.marks for q in questions),
            start_time=now,
            status=AttemptStatus.IN_PROGRESS,
        )

        after_commit(
            publish_quiz_attempt_started,
            user_id=str(actor.user_id),
            quiz_id=str(quiz.id),
            attempt_id=str(attempt.id),
            attempt_number=attempt.attempt_number,
        )
        logger.info(f"User {actor.user_id} started attempt #{attempt.attempt_number} on quiz {quiz.id}")

        return {
            'attempt_id': str(attempt.id),
            'attempt_number': attempt.attempt_number,
            'questions': [q.to_learner_dict() for q in questions],
            'question_count': len(questions),
            'total_marks': attempt.total_marks,
            'quiz_time': quiz.quiz_time,
            'start_time': attempt.start_time,
        }

    # =========================================================================
    # SUBMIT AND GRADE
    # =========================================================================

    @staticmethod
    @unit_of_work
    def submit_attempt(actor: Actor, attempt_id: str, answers: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Submit answers for a live attempt.

        Only questions of the attempt's frozen set are scored. Multiple
        choice answers are marked at once; any text answer leaves the
        attempt waiting for a grader.

        Args:
            actor: Attempt owner
            attempt_id: Attempt ID
            answers: [{'question_id', 'selected_option' | 'text_answer'}]

        Returns:
            Score, percentage, passed, needs_manual_grading, recorded
            answers and whether the lesson was completed

        Raises:
            StateConflictError: Attempt already submitted or graded
            TimeLimitExceededError: Submitted after the time limit
        """
        attempt = QuizAttemptService._get_attempt(attempt_id, lock=True, user_id=actor.user_id)
        if not attempt.is_live:
            raise StateConflictError(
                "Quiz attempt has already been submitted",
                code="ATTEMPT_ALREADY_SUBMITTED",
                details={'attempt_id': str(attempt.id), 'status': attempt.status}
            )

        now = timezone.now()
        if attempt.is_expired(now):
            raise TimeLimitExceededError(attempt.id)

        quiz = attempt.quiz
        questions = {str(q.id): q for q in quiz.questions.filter(id__in=attempt.question_set)}

        recorded = []
        total_score = 0.0
        total_possible = 0
        needs_manual_grading = False

        for answer in answers or []:
            question_id = str(answer.get('question_id'))
            question = questions.pop(question_id, None)
            if question is None or not attempt.contains_question(question_id):
                continue

            entry = {
                'question_id': question_id,
                'question_type': question.question_type,
                'question_text': question.text,
                'max_marks': question.marks,
                'selected_option': None,
                'text_answer': None,
                'correct_option': None,
                'is_correct': None,
                'marks': None,
                'feedback': '',
            }
            if question.is_mcq:
                selected = answer.get('selected_option')
                is_correct = question.is_correct_answer(selected)
                entry.update(
                    selected_option=selected,
                    correct_option=question.correct_option,
                    is_correct=is_correct,
                    marks=question.marks if is_correct else 0,
                )
                total_score += entry['marks']
                total_possible += question.marks
            else:
                entry['text_answer'] = answer.get('text_answer') or ''
                needs_manual_grading = True
            recorded.append(entry)

        attempt.answers = recorded
        attempt.submit_time = now
        attempt.needs_manual_grading = needs_manual_grading

        if needs_manual_grading:
            attempt.status = AttemptStatus.SUBMITTED
            attempt.score = None
            attempt.percentage = None
            attempt.passed = None
        else:
            percentage = total_score / total_possible * 100 if total_possible else 0.0
            attempt.status = AttemptStatus.GRADED
            attempt.score = total_score
            attempt.percentage = percentage
            attempt.passed = percentage >= quiz.passing_score
            attempt.graded_at = now
        attempt.save()

        lesson_completed = False
        if attempt.passed:
            lesson_completed = QuizAttemptService._record_pass(attempt, quiz)

        if needs_manual_grading:
            after_commit(
                publish_quiz_attempt_submitted,
                user_id=str(attempt.user_id),
                quiz_id=str(quiz.id),
                attempt_id=str(attempt.id),
                needs_manual_grading=True,
            )
        else:
            after_commit(
                publish_quiz_attempt_graded,
                user_id=str(attempt.user_id),
                quiz_id=str(quiz.id),
                attempt_id=str(attempt.id),
                percentage=attempt.percentage,
                passed=attempt.passed,
            )
        logger.info(f"Attempt {attempt.id} submitted with status {attempt.status}")

        return {
            'attempt_id': str(attempt.id),
            'status': attempt.status,
            'score': attempt.score,
            'percentage': attempt.percentage,
            'passed': attempt.passed,
            'needs_manual_grading': needs_manual_grading,
            'answers': attempt.answer_views(
                include_correct=attempt.status == AttemptStatus.GRADED and quiz.lesson.allow_review
            ),
            'lesson_completed': lesson_completed,
        }

    @staticmethod
    @unit_of_work
    def grade_attempt(actor: Actor, attempt_id: str, grades: List[Dict[str, Any]]) -> QuizAttempt:
        """
        Grade the text answers of a submitted attempt.

        Awarded marks are clamped to the question's maximum; multiple choice
        marks stay as computed. The percentage is taken over the marks of the
        attempt's whole question set.

        Args:
            actor: Staff grader
            attempt_id: Attempt ID
            grades: [{'question_id', 'marks', 'feedback'}]

        Returns:
            Graded attempt
        """
        actor.require_staff()
        attempt = QuizAttemptService._get_attempt(attempt_id, lock=True)
        if attempt.status != AttemptStatus.SUBMITTED:
            raise StateConflictError(
                "Only submitted attempts can be graded",
                code="ATTEMPT_NOT_GRADABLE",
                details={'attempt_id': str(attempt.id), 'status': attempt.status}
            )

        by_question = {str(g.get('question_id')): g for g in grades or []}
        unknown = [q for q in by_question if attempt.find_answer(q) is None]
        if unknown:
            raise InvalidRequestError(
                "Grades reference questions that were not answered in this attempt",
                field='grades',
                details={'question_ids': unknown}
            )

        graded_answers = []
        for stored in attempt.answers:
            entry = dict(stored)
            grade = by_question.get(entry['question_id'])
            if entry['question_type'] != QuestionType.MCQ:
                awarded = float((grade or {}).get('marks') or 0)
                entry['marks'] = min(max(awarded, 0.0), float(entry['max_marks']))
            if grade and grade.get('feedback') is not None:
                entry['feedback'] = grade['feedback']
            graded_answers.append(entry)

        now = timezone.now()
        quiz = attempt.quiz
        attempt.answers = graded_answers
        attempt.score = attempt.awarded_marks()
        attempt.percentage = (
            attempt.score / attempt.total_marks * 100 if attempt.total_marks else 0.0
        )
        attempt.passed = attempt.percentage >= quiz.passing_score
        attempt.status = AttemptStatus.GRADED
        attempt.graded_by = actor.user_id
        attempt.graded_at = now
        attempt.notification_viewed = False
        attempt.save()

        if attempt.passed:
            QuizAttemptService._record_pass(attempt, quiz)

        after_commit(
            publish_quiz_attempt_graded,
            user_id=str(attempt.user_id),
            quiz_id=str(quiz.id),
            attempt_id=str(attempt.id),
            percentage=attempt.percentage,
            passed=attempt.passed,
            graded_by=str(actor.user_id),
        )
        logger.info(f"Attempt {attempt.id} graded by {actor.user_id}: {attempt.percentage:.2f}%")
        return attempt

    # =========================================================================
    # RESULTS AND RESET
    # =========================================================================

    @staticmethod
    def get_results(actor: Actor, attempt_id: str) -> Dict[str, Any]:
        """
        Results of a graded attempt, including correct answers.

        Learners only see results when the lesson allows review.
        """
        attempt = QuizAttemptService._get_attempt(attempt_id)
        QuizAttemptService._check_reader(actor, attempt)

        if attempt.status != AttemptStatus.GRADED:
            raise StateConflictError(
                "Results are available once the attempt is graded",
                code="ATTEMPT_NOT_GRADED",
                details={'attempt_id': str(attempt.id), 'status': attempt.status}
            )

        quiz = attempt.quiz
        if not quiz.lesson.allow_review and not actor.is_staff:
            raise AccessDeniedError(
                AccessReason.REVIEW_NOT_ALLOWED,
                message="Review is not allowed for this quiz"
            )

        return {
            **attempt.summary(),
            'quiz_id': str(quiz.id),
            'quiz_title': quiz.title,
            'passing_score': quiz.passing_score,
            'total_marks': attempt.total_marks,
            'graded_at': attempt.graded_at,
            'answers': attempt.answer_views(include_correct=True),
        }

    @staticmethod
    @unit_of_work
    def reset_attempts(
        actor: Actor,
        course_id: str,
        module_id: str,
        lesson_id: str,
        user_id: str,
    ) -> Dict[str, Any]:
        """
        Delete every attempt of a learner at a quiz.

        The quiz also leaves the learner's completed set, so the next start
        is attempt number 1.

        Returns:
            Dict with quiz_id, user_id and attempts_reset
        """
        actor.require_staff()
        quiz = QuizService.get_lesson_quiz(course_id, module_id, lesson_id)

        attempts = QuizAttempt.objects.filter(quiz=quiz, user_id=user_id)
        count = attempts.count()
        if not count:
            raise NotFoundError('attempt', message="No attempts found for this user")

        attempts.delete()
        ProgressService.remove_quiz_completion(user_id, course_id, module_id, quiz.id)

        logger.info(f"Reset {count} attempts of user {user_id} on quiz {quiz.id} by {actor.user_id}")
        return {'quiz_id': str(quiz.id), 'user_id': str(user_id), 'attempts_reset': count}

    # =========================================================================
    # READS
    # =========================================================================

    @staticmethod
    def get_quiz_status(actor: Actor, course_id: str, module_id: str, lesson_id: str) -> Dict[str, Any]:
        """
        Quiz overview for the caller.

        Lesson gates (time on lesson, previous quiz) are reported through
        `blocked_reason`; missing module access raises. Expired live
        attempts already count as used.
        """
        decision = AccessService.can_attempt_quiz(actor, course_id, module_id, lesson_id)
        if not decision.allowed and decision.reason in MODULE_DENIAL_REASONS:
            decision.raise_if_denied()

        quiz = QuizService.get_lesson_quiz(course_id, module_id, lesson_id)
        now = timezone.now()
        attempts = list(QuizAttempt.objects.filter(quiz=quiz, user_id=actor.user_id).order_by('attempt_number'))
        for attempt in attempts:
            attempt.quiz = quiz

        ongoing = next((a for a in attempts if a.is_live and not a.is_expired(now)), None)
        used = sum(1 for a in attempts if a.is_completed or (a.is_live and a.is_expired(now)))
        under_limit = actor.is_staff or used < quiz.max_attempts

        question_count = quiz.questions.count()
        if quiz.question_pool_size:
            question_count = min(question_count, quiz.question_pool_size)

        data = {
            'quiz': {
                'id': str(quiz.id),
                'title': quiz.title,
                'description': quiz.description,
                'quiz_time': quiz.quiz_time,
                'passing_score': quiz.passing_score,
                'max_attempts': quiz.max_attempts,
                'question_count': question_count,
            },
            'can_take_quiz': decision.allowed,
            'blocked_reason': decision.reason,
            'blocked_details': decision.details if not decision.allowed else {},
            'attempts': [a.summary() for a in attempts],
            'completed_attempts_count': used,
            'can_start_new_attempt': decision.allowed and ongoing is None and under_limit,
            'ongoing_attempt_id': str(ongoing.id) if ongoing else None,
            'quiz_completed': any(a.passed for a in attempts),
            'allow_review': quiz.lesson.allow_review,
        }

        if actor.is_staff:
            data['quiz']['total_marks'] = quiz.total_marks
            data['quiz']['question_pool_size'] = quiz.question_pool_size
            data['questions'] = [q.to_staff_dict() for q in quiz.questions.all()]
            data['attempt_count'] = quiz.attempts.count()
            data['pending_grading'] = quiz.attempts.filter(
                status=AttemptStatus.SUBMITTED, needs_manual_grading=True
            ).count()

        return data

    @staticmethod
    def get_attempt_detail(actor: Actor, attempt_id: str) -> Dict[str, Any]:
        """
        One attempt as seen by its owner or by staff.

        A live attempt includes its questions so the learner can resume.
        """
        attempt = QuizAttemptService._get_attempt(attempt_id)
        QuizAttemptService._check_reader(actor, attempt)

        quiz = attempt.quiz
        include_correct = actor.is_staff or (
            attempt.status == AttemptStatus.GRADED and quiz.lesson.allow_review
        )
        data = {
            **attempt.summary(),
            'quiz_id': str(quiz.id),
            'user_id': str(attempt.user_id),
            'total_marks': attempt.total_marks,
            'answers': attempt.answer_views(include_correct=include_correct),
        }

        if attempt.is_live:
            by_id = {str(q.id): q for q in quiz.questions.filter(id__in=attempt.question_set)}
            data['deadline'] = attempt.deadline
            data['questions'] = [
                by_id[q].to_learner_dict() for q in attempt.question_set if q in by_id
            ]
        return data

    @staticmethod
    def get_ungraded_submissions(
        actor: Actor,
        course_id: str = None,
        module_id: str = None,
        lesson_id: str = None,
    ):
        """
        Attempts waiting for a grader, oldest first.

        Attempts closed by expiry have nothing to grade and are left out.

        Args:
            actor: Staff member
            course_id: Filter by course
            module_id: Filter by module
            lesson_id: Filter by lesson

        Returns:
            Queryset of submitted attempts
        """
        actor.require_staff()
        queryset = QuizAttempt.objects.filter(status=AttemptStatus.SUBMITTED, needs_manual_grading=True)

        if course_id:
            queryset = queryset.filter(quiz__lesson__module__course_id=course_id)

        if module_id:
            queryset = queryset.filter(quiz__lesson__module_id=module_id)

        if lesson_id:
            queryset = queryset.filter(quiz__lesson_id=lesson_id)

        return queryset.select_related('quiz', 'quiz__lesson').order_by('submit_time')
