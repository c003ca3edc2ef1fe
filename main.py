import io
import math
import sys
import time

import pygame
import requests

from classes import DIFFICULTIES, QuotaExceeded, SupplierFailure
from engine import LOW_TIME, MemoryGame
from settings import load_settings, save_settings
from shared.models import LOST, WON
from tokens import PokemonSupplier

# Only the parts of pygame we use
pygame.display.init()
pygame.font.init()

SETTINGS = load_settings()

# Colors
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GRAY = (200, 200, 200)
BLUE = (0, 100, 255)
GREEN = (0, 200, 0)
RED = (200, 0, 0)
YELLOW = (255, 255, 0)
CARD_BACK_COLOR = (50, 50, 200)
CARD_FRONT_COLOR = (220, 220, 255)
CARD_MATCHED_COLOR = (200, 255, 200)

# Fonts
FONT_SMALL = pygame.font.SysFont('Arial', 20)
FONT_MEDIUM = pygame.font.SysFont('Arial', 30)
FONT_LARGE = pygame.font.SysFont('Arial', 40)
FONT_CARD = pygame.font.SysFont('Arial', 16, bold=True)

# Game settings
FPS = 60
CARD_MARGIN = 10
TOAST_DURATION = 3000  # milliseconds
LEVEL_KEYS = {pygame.K_1: "easy", pygame.K_2: "medium", pygame.K_3: "hard"}


class ImageCache:
    """Downloads card artwork once and keeps the scaled surfaces."""

    def __init__(self, timeout=5):
        self.timeout = timeout
        self.images = {}

    def get(self, token, size):
        key = (token.name, size)
        if key in self.images:
            return self.images[key]

        surface = None
        if token.image_url:
            try:
                response = requests.get(token.image_url, timeout=self.timeout)
                response.raise_for_status()
                image = pygame.image.load(io.BytesIO(response.content))
                surface = pygame.transform.smoothscale(image, size)
            except (requests.exceptions.RequestException, pygame.error) as e:
                print(f"Could not load image for {token.name}: {e}")

        # A failed download is cached too, the card falls back to its name
        self.images[key] = surface
        return surface


class PreloadingSupplier:
    """
    Wraps the token supplier so card artwork is downloaded before the engine
    starts the round countdown.
    """

    def __init__(self, supplier, gui):
        self.supplier = supplier
        self.gui = gui

    def __call__(self, count):
        tokens = self.supplier(count)
        self.gui.layout_board(len(tokens) * 2)
        image_size = self.gui.image_size()
        for token in tokens:
            pygame.event.pump()
            self.gui.images.get(token, image_size)
        return tokens


class GameGUI:
    """Graphical user interface for the memory match game."""

    def __init__(self):
        """Initialize the game GUI."""
        self.clock = pygame.time.Clock()
        self.screen = None
        self.width = 800
        self.height = 600
        self.card_width = 80
        self.card_height = 100
        self.board_margin_top = 120
        self.board_margin_left = 0
        self.cols = 4
        self.message = ""
        self.message_color = BLUE
        self.message_timer = 0
        self.text_cache = {}
        self.images = ImageCache(timeout=SETTINGS.get("request_timeout", 5))

        self.game = MemoryGame(
            PreloadingSupplier(PokemonSupplier.from_settings(SETTINGS), self),
            clock=lambda: pygame.time.get_ticks() / 1000.0,
        )
        self.game.add_listener(self.on_game_event)

        self.power_rect = pygame.Rect(self.width - 170, 70, 150, 36)
        self.reset_rect = pygame.Rect(self.width - 330, 70, 150, 36)

    def setup_window(self):
        """Set up the game window."""
        self.screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Pokemon Memory Match")

    def on_game_event(self, event, game):
        """Listener for engine events that need a message on screen."""
        if event == LOW_TIME:
            self.show_message("Hurry up!", RED, 1500)

    def show_start_screen(self):
        """Show the start screen and return the chosen difficulty name."""
        title = FONT_LARGE.render("POKEMON MEMORY MATCH", True, BLUE)
        subtitle = FONT_SMALL.render("Find matching pairs before time runs out", True, BLACK)

        button_width = 200
        button_height = 60
        button_margin = 20
        button_y_start = 220
        buttons = []
        for i, name in enumerate(DIFFICULTIES):
            rect = pygame.Rect(self.width // 2 - button_width // 2,
                               button_y_start + (button_height + button_margin) * i,
                               button_width, button_height)
            buttons.append((name, rect))

        selected = SETTINGS.get("difficulty", "easy")
        if selected not in DIFFICULTIES:
            selected = "easy"

        while True:
            mouse_pos = pygame.mouse.get_pos()
            mouse_clicked = False

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    pygame.quit()
                    sys.exit()
                elif event.type == pygame.KEYDOWN:
                    if event.key in LEVEL_KEYS:
                        return self.choose_level(LEVEL_KEYS[event.key])
                    elif event.key == pygame.K_RETURN:
                        return self.choose_level(selected)
                    elif event.key == pygame.K_ESCAPE:
                        pygame.quit()
                        sys.exit()
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    mouse_clicked = True

            self.screen.fill(WHITE)
            self.screen.blit(title, (self.width // 2 - title.get_width() // 2, 80))
            self.screen.blit(subtitle, (self.width // 2 - subtitle.get_width() // 2, 140))

            for name, rect in buttons:
                hovered = rect.collidepoint(mouse_pos)
                if hovered:
                    selected = name
                    if mouse_clicked:
                        return self.choose_level(name)
                button_color = BLUE if name == selected else (100, 100, 255)
                pygame.draw.rect(self.screen, button_color, rect, 0, 10)
                pygame.draw.rect(self.screen, WHITE, rect, 2, 10)
                text = FONT_MEDIUM.render(name.capitalize(), True, WHITE)
                self.screen.blit(text, (rect.centerx - text.get_width() // 2,
                                        rect.centery - text.get_height() // 2))

            info = FONT_SMALL.render(DIFFICULTIES[selected].describe(), True, BLACK)
            self.screen.blit(info, (self.width // 2 - info.get_width() // 2, 480))
            self.draw_message()

            pygame.display.flip()
            self.clock.tick(FPS)

    def choose_level(self, name):
        """Remember the level for next time and return it."""
        if SETTINGS.get("difficulty") != name:
            SETTINGS["difficulty"] = name
            save_settings(SETTINGS)
        return name

    def layout_board(self, count):
        """Size and center the card grid for a board of `count` cards."""
        self.cols = math.ceil(math.sqrt(count))
        rows = math.ceil(count / self.cols)

        max_card_width = (self.width - CARD_MARGIN * (self.cols + 1)) // self.cols
        max_card_height = (self.height - self.board_margin_top - CARD_MARGIN * (rows + 1)) // rows
        self.card_width = int(min(max_card_width, max_card_height * 0.8))
        self.card_height = int(self.card_width * 1.25)
        self.board_margin_left = (self.width - (self.cols * self.card_width + (self.cols - 1) * CARD_MARGIN)) // 2

    def image_size(self):
        return (self.card_width - 10, self.card_width - 10)

    def get_card_rect(self, index):
        """Get the rectangle for the card at the given board position."""
        row, col = divmod(index, self.cols)
        x = self.board_margin_left + col * (self.card_width + CARD_MARGIN)
        y = self.board_margin_top + row * (self.card_height + CARD_MARGIN)
        return pygame.Rect(x, y, self.card_width, self.card_height)

    def get_card_at_pos(self, pos):
        """Return the ID of the card under the given screen position."""
        for index, card in enumerate(self.game.board):
            if self.get_card_rect(index).collidepoint(pos):
                return card.card_id
        return None

    def draw_card(self, card, rect):
        """Draw a card on the screen."""
        if not card.is_face_up and not card.is_matched:
            pygame.draw.rect(self.screen, CARD_BACK_COLOR, rect, 0, 5)
            pygame.draw.rect(self.screen, BLUE, rect, 2, 5)
            for i in range(3):
                for j in range(4):
                    x = rect.left + rect.width * (i + 1) / 4
                    y = rect.top + rect.height * (j + 1) / 5
                    pygame.draw.circle(self.screen, WHITE, (x, y), 3)
            return

        color = CARD_MATCHED_COLOR if card.is_matched else CARD_FRONT_COLOR
        border = GREEN if card.is_matched else BLUE
        pygame.draw.rect(self.screen, color, rect, 0, 5)
        pygame.draw.rect(self.screen, border, rect, 2, 5)

        image_size = self.image_size()
        image = self.images.get(card.token, image_size)
        if image is not None:
            self.screen.blit(image, (rect.x + 5, rect.y + 5))
            label_y = rect.y + image_size[1] + 8
        else:
            label_y = rect.centery - FONT_CARD.get_height() // 2

        text = self.render_text(FONT_CARD, card.name, BLACK)
        self.screen.blit(text, (rect.centerx - text.get_width() // 2, label_y))

    def draw_board(self):
        """Draw the game board and all cards."""
        for index, card in enumerate(self.game.board):
            self.draw_card(card, self.get_card_rect(index))

    def render_text(self, font, text, color):
        """Render and cache text to avoid recreating text surfaces."""
        cache_key = (font, text, color)
        if cache_key not in self.text_cache:
            if len(self.text_cache) > 200:
                self.text_cache.clear()
            self.text_cache[cache_key] = font.render(text, True, color)
        return self.text_cache[cache_key]

    def draw_button(self, rect, label, enabled):
        mouse_pos = pygame.mouse.get_pos()
        if not enabled:
            color = GRAY
        elif rect.collidepoint(mouse_pos):
            color = BLUE
        else:
            color = (100, 100, 255)
        pygame.draw.rect(self.screen, color, rect, 0, 8)
        pygame.draw.rect(self.screen, WHITE, rect, 2, 8)
        text = self.render_text(FONT_SMALL, label, WHITE)
        self.screen.blit(text, (rect.centerx - text.get_width() // 2,
                                rect.centery - text.get_height() // 2))

    def draw_ui(self):
        """Draw the status bar and buttons."""
        game = self.game
        stats = [
            f"Clicks: {game.clicks}",
            f"Matched: {game.matched_pairs}",
            f"Pairs left: {game.pairs_left}",
            f"Total pairs: {game.total_pairs}",
        ]
        x = 10
        for line in stats:
            text = self.render_text(FONT_SMALL, line, BLACK)
            self.screen.blit(text, (x, 20))
            x += text.get_width() + 25

        timer_color = RED if game.low_time else BLACK
        timer_text = self.render_text(FONT_MEDIUM, f"Time: {game.time_left}", timer_color)
        self.screen.blit(timer_text, (10, 65))

        now_text = FONT_SMALL.render(time.strftime("%H:%M:%S"), True, GRAY)
        self.screen.blit(now_text, (self.width - now_text.get_width() - 10, 20))

        self.draw_button(self.power_rect, f"Power-Up ({game.power_ups_left})", game.active)
        self.draw_button(self.reset_rect, "Reset", True)
        self.draw_message()

    def draw_message(self):
        if self.message and pygame.time.get_ticks() < self.message_timer:
            text = self.render_text(FONT_MEDIUM, self.message, self.message_color)
            box = pygame.Rect(self.width // 2 - text.get_width() // 2 - 10, self.height - 60,
                              text.get_width() + 20, text.get_height() + 10)
            pygame.draw.rect(self.screen, WHITE, box, 0, 5)
            pygame.draw.rect(self.screen, self.message_color, box, 2, 5)
            self.screen.blit(text, (box.x + 10, box.y + 5))

    def show_message(self, message, color=BLUE, duration=TOAST_DURATION):
        """Show a message for a duration in milliseconds."""
        self.message = message
        self.message_color = color
        self.message_timer = pygame.time.get_ticks() + duration

    def show_loading(self):
        self.screen.fill(WHITE)
        text = FONT_MEDIUM.render("Catching Pokemon...", True, BLUE)
        self.screen.blit(text, (self.width // 2 - text.get_width() // 2, self.height // 2))
        pygame.display.flip()

    def use_power_up(self):
        try:
            self.game.use_power_up()
        except QuotaExceeded as e:
            self.show_message(str(e), RED)

    def show_win_screen(self):
        """Show the win overlay. Returns True to play again, False for the menu."""
        summary = self.game.summary
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 180))
        self.screen.blit(overlay, (0, 0))

        title = FONT_LARGE.render("You Win!", True, YELLOW)
        self.screen.blit(title, (self.width // 2 - title.get_width() // 2, 140))

        lines = [
            f"Clicks: {summary.clicks}",
            f"Time: {summary.elapsed_seconds}s of {summary.time_limit}s",
            f"Power-Ups used: {summary.power_ups_used}",
        ]
        for i, line in enumerate(lines):
            text = FONT_MEDIUM.render(line, True, WHITE)
            self.screen.blit(text, (self.width // 2 - text.get_width() // 2, 210 + i * 40))

        play_again_rect = pygame.Rect(self.width // 2 - 100, 360, 200, 50)
        menu_rect = pygame.Rect(self.width // 2 - 100, 430, 200, 50)
        for rect, label, color in ((play_again_rect, "Play Again", BLUE), (menu_rect, "Main Menu", GREEN)):
            pygame.draw.rect(self.screen, color, rect, 0, 10)
            pygame.draw.rect(self.screen, WHITE, rect, 2, 10)
            text = FONT_MEDIUM.render(label, True, WHITE)
            self.screen.blit(text, (rect.centerx - text.get_width() // 2,
                                    rect.centery - text.get_height() // 2))
        pygame.display.flip()

        while True:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    pygame.quit()
                    sys.exit()
                elif event.type == pygame.MOUSEBUTTONDOWN:
                    if play_again_rect.collidepoint(event.pos):
                        return True
                    elif menu_rect.collidepoint(event.pos):
                        return False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    return False
            self.clock.tick(FPS)

    def start_round(self, level):
        """Start a round. Returns False if the tokens could not be fetched."""
        self.show_loading()
        try:
            self.game.start(level)
        except SupplierFailure as e:
            print(f"Could not start round: {e}")
            self.show_message("Could not load Pokemon. Try again.", RED)
            return False
        self.layout_board(len(self.game.board))
        return True

    def run_game(self, level):
        """Run rounds at the given level until the player goes back to the menu."""
        if not self.start_round(level):
            return

        lost_at = None
        while True:
            self.game.update()

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    pygame.quit()
                    sys.exit()
                elif event.type == pygame.KEYDOWN:
                    if event.key in (pygame.K_ESCAPE, pygame.K_r):
                        self.game.reset()
                        return
                    elif event.key == pygame.K_p:
                        self.use_power_up()
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    if self.reset_rect.collidepoint(event.pos):
                        self.game.reset()
                        return
                    elif self.power_rect.collidepoint(event.pos):
                        self.use_power_up()
                    else:
                        card_id = self.get_card_at_pos(event.pos)
                        if card_id is not None:
                            self.game.flip(card_id)

            self.screen.fill(WHITE)
            self.draw_board()
            self.draw_ui()
            pygame.display.flip()

            if self.game.outcome == WON:
                if self.show_win_screen() and self.start_round(level):
                    continue
                self.game.reset()
                return
            elif self.game.outcome == LOST:
                if lost_at is None:
                    lost_at = pygame.time.get_ticks()
                    self.show_message("Game Over", RED, TOAST_DURATION)
                elif pygame.time.get_ticks() - lost_at >= TOAST_DURATION:
                    self.game.reset()
                    return

            self.clock.tick(FPS)


def main():
    """Main function to run the game."""
    pygame.init()
    gui = GameGUI()
    gui.setup_window()

    while True:
        level = gui.show_start_screen()
        gui.run_game(level)


if __name__ == "__main__":
    main()
